"""Rule-based outbound caller used when no provider key is configured."""
