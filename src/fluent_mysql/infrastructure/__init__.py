"""Statement generation infrastructure (no I/O)."""
