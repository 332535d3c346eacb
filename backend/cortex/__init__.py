"""Cortex: Google Drive dashboard backend."""
