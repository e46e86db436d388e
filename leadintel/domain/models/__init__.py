"""Domain models (value objects and result types)."""
