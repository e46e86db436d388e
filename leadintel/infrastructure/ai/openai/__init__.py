"""OpenAI outbound caller."""
