"""Business logic services for Cortex."""
