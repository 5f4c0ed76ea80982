"""Test suite for audit_trigger."""
