"""Per-section config schemas."""
