"""Core: configuration, lifespan, and exception handlers."""
