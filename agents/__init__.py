"""LLM-backed capabilities with local fallbacks."""
