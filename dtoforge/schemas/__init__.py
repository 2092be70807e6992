"""Schemas — Pydantic models for values that cross the API boundary."""
