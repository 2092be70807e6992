"""API Layer — FastAPI dependencies, schema routes and error handlers.

Invariants:
    - Routes only call services; no constraint logic lives here
    - All failures return structured JSON responses

Design Decisions:
    - Thin adapters delegate to services (ADR: impureim sandwich)
"""
