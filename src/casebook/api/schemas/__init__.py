"""Pydantic response schemas for the REST API."""
