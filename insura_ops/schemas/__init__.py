"""Pydantic models for entities, auth, results and API responses."""
