"""shopagent — resilient LLM agent core and router for storefront operations."""

__version__ = "0.1.0"
