"""
scoring/ — SCAT5 scoring

Modules:
    rules.py     - Pure per-module scoring rules
    summary.py   - Session score aggregation
"""
