"""dtoforge — schema-derived DTO validation.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)

Design Decisions:
    - Empty __init__.py: explicit imports from each module, no star exports
      (ADR: every public name has exactly one import path)
"""
