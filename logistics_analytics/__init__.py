"""
Logistics Movement Analytics
============================

Extracts logistics movement records from a relational database,
cleans and aggregates them, and publishes charts, console insights
and processed CSV files.
"""

__version__ = "1.0.0"
