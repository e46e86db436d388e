"""Token estimation."""
