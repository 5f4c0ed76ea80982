"""Audit tables and audit triggers for Oracle tables."""
