"""Rate limiting and retry.

Bounded Context: API Resilience
"""
