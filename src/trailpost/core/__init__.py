"""Core configuration, errors and identity primitives."""
