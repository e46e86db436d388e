"""Infrastructure Layer: concrete implementations and adapters.

Connects the core to the outside world (provider SDKs, the file system, the
terminal) and hosts the resilience, caching, monitoring and text-intelligence
components the orchestrator composes.
"""
