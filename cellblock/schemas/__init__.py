"""Pydantic schemas for input validation and read snapshots."""
