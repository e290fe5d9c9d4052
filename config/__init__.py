"""Configuration package for the screening interview engine."""
from .llm import AppConfig, LlmRoute, load_config, resolve_registry
from .registry import FOLLOW_UP_KEY, QUALITY_KEY, RESPONDER_KEY, bind_model, get_model, unbind_model
from .settings import Settings, settings

__all__ = [
    "AppConfig",
    "LlmRoute",
    "load_config",
    "resolve_registry",
    "FOLLOW_UP_KEY",
    "QUALITY_KEY",
    "RESPONDER_KEY",
    "bind_model",
    "get_model",
    "unbind_model",
    "Settings",
    "settings",
]
