"""
Analysis Module

Read-only consumers of stored profiling runs.

This module provides:
- Edge-by-edge comparison of two runs
- Aggregation of several runs into an averaged payload
- Summary tables over all stored runs with CSV/JSON export
"""

__version__ = "0.1.0"
