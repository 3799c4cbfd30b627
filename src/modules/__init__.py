"""Custom module loading for user-supplied transform classes."""
