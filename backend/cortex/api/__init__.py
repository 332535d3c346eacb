"""HTTP API for Cortex."""
