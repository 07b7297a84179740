"""Host-specific screenshot primitives."""
