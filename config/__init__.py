"""Configuration package for the interview session engine."""
from .registry import GENERATOR_KEY, GRADER_KEY, bind_model, get_model, is_bound
from .routes import AppConfig, LlmRoute, load_app_registry, load_config, load_route, resolve_registry
from .settings import PROJECT_ROOT, Settings, llm_config_path, settings

__all__ = [
    "AppConfig",
    "LlmRoute",
    "load_app_registry",
    "load_config",
    "load_route",
    "resolve_registry",
    "GENERATOR_KEY",
    "GRADER_KEY",
    "bind_model",
    "get_model",
    "is_bound",
    "PROJECT_ROOT",
    "Settings",
    "llm_config_path",
    "settings",
]
