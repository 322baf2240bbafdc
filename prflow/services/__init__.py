"""Core services: reconciliation, CI monitoring, milestone health, versioning."""
