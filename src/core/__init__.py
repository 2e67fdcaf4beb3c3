"""
Core domain models, mathematical primitives, and invariants.

This module contains the foundational building blocks of the landed cost
engine that are independent of external systems (forms, storage, export).
"""
