"""
orderlens: time-windowed order analytics core.

Resolves named reporting periods against an injectable clock, buckets
transactions into chart series, computes dashboard metrics, and projects
series forward with least-squares regression.
"""

__version__ = "1.0.0"
