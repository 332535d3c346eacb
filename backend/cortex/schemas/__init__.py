"""Pydantic schemas for the Cortex API."""
