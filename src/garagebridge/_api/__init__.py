"""Cloud API endpoint modules (internal)."""
