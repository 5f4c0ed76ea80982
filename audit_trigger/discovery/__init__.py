"""Catalog introspection, DDL text generation and Oracle connections."""
