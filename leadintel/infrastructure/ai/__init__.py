"""Outbound caller implementations.

Contains adapters for the supported providers (OpenAI, Groq) and an offline
rule-based caller, each implementing the `OutboundCaller` interface.
"""
