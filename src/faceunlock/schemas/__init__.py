"""Pydantic schemas for cached records."""
