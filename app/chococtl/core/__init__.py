"""Core engine: paths, settings, errors and the install orchestrator."""
