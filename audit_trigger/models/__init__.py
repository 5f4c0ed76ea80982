"""Column and table metadata models."""
