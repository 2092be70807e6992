"""Core Layer — pure constraint-model logic, no IO, no caches, no engines.

Invariants:
    - No module in core/ imports from services/, api/, schemas/ or infrastructure/
    - All functions are pure and deterministic; inputs are never mutated

Design Decisions:
    - Functional core separated from the cached/engine-backed shell (ADR: impureim sandwich)
"""
