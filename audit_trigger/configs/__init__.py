"""Configuration, constants and exceptions."""
