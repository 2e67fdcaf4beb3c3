"""
Test suite for the landed cost engine

Contains:
- tests/unit/          : Unit tests for math primitives, domain models,
                         recompute pipeline, editor and contracts
"""
