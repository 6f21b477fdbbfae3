"""Built-in pattern catalog entries."""
