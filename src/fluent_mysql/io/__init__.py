"""I/O layer: connection management and execution tracing."""
