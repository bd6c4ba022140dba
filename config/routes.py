"""LLM routing configuration for the question generator and grader."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, Tuple, Type

from pydantic import BaseModel, Field, model_validator


class LlmRoute(BaseModel):
    """One OpenAI-compatible chat endpoint."""

    name: str
    base_url: str
    endpoint: str
    model: str
    timeout_s: float = Field(ge=0.1)
    max_retries: int = Field(default=2, ge=0)
    api_key_env: str | None = None
    response_format: str | None = None
    extra_headers: Dict[str, str] = Field(default_factory=dict)
    sequential: bool = False
    enforce_json: bool = True


class AppConfig(BaseModel):
    """Routes by id, and which route serves each collaborator key."""

    llm_routes: Dict[str, LlmRoute]
    registry: Dict[str, str]

    @model_validator(mode="after")
    def _registry_targets_exist(self) -> "AppConfig":
        dangling = sorted(key for key, route_id in self.registry.items() if route_id not in self.llm_routes)
        if dangling:
            raise ValueError(f"Registry entries point at unknown routes: {dangling}")
        return self


def load_config(path: Path) -> AppConfig:
    return AppConfig.model_validate_json(path.read_text(encoding="utf-8"))


def resolve_registry(
    cfg: AppConfig, schemas: Dict[str, Type[BaseModel]]
) -> Dict[str, Tuple[LlmRoute, Type[BaseModel]]]:
    """Pair every requested key with its route and output schema.

    Raises:
        KeyError: If a key has no registry entry.
        TypeError: If a schema is not a pydantic model.
    """

    resolved: Dict[str, Tuple[LlmRoute, Type[BaseModel]]] = {}
    for key, schema in schemas.items():
        if key not in cfg.registry:
            raise KeyError(f"Registry entry missing for '{key}'")
        if not (isinstance(schema, type) and issubclass(schema, BaseModel)):
            raise TypeError(f"Schema for '{key}' must be a pydantic model")
        resolved[key] = (cfg.llm_routes[cfg.registry[key]], schema)
    return resolved


def load_app_registry(
    path: Path, schemas: Dict[str, Type[BaseModel]]
) -> Dict[str, Tuple[LlmRoute, Type[BaseModel]]]:
    return resolve_registry(load_config(path), schemas)


def load_route(path: Path, key: str, schema: Type[BaseModel]) -> LlmRoute:
    """Route configured for a single collaborator key."""

    route, _ = load_app_registry(path, {key: schema})[key]
    return route
