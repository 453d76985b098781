"""PermAuto access authorization service."""
