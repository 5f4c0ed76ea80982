"""Identifier validation helpers."""
