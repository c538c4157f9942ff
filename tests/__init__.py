"""
Test suite for the pooled vault core

Contains:
- tests/unit/          : Unit tests for math, accounting, valuation, operations and ledger
"""
