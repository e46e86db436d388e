"""Application core: the orchestrator façade and the error taxonomy."""
