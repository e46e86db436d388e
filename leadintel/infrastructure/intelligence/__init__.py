"""Deterministic rule-based text analysis.

Bounded Context: Conversation Intelligence
"""
