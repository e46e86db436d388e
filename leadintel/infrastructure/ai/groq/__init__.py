"""Groq outbound caller."""
