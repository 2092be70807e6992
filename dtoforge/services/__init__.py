"""Services Layer — cached compilation pipeline and lifecycle hook dispatch.

Invariants:
    - All process-memory state (caches) lives here, never in core/
"""
