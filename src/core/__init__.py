"""
Core domain models, numeric primitives, and invariants.

This module contains the foundational building blocks of the vault core
that are independent of external systems (custody, pools, swap venues).
"""
