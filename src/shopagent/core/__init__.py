"""Core infrastructure: config, events, exceptions, LLM access, utilities."""
