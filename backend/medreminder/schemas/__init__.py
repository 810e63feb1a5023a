"""Schemas — Pydantic models for input validation and read views at the package boundary."""
