"""Mock Oracle objects and catalog row builders."""
