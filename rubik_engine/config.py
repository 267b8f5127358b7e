"""YAML configuration for solver, table cache and server."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from .solver import SolverOptions


@dataclass(frozen=True)
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 8000


@dataclass(frozen=True)
class EngineConfig:
    solver: SolverOptions = field(default_factory=SolverOptions)
    cache_dir: str | None = None
    server: ServerConfig = field(default_factory=ServerConfig)


def load_config(path: str | Path) -> dict:
    """Load YAML config. Returns dict with optional 'solver', 'tables' and 'server' keys."""
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config {path} must be a mapping at the top level")
    return data


def _section(raw: dict, name: str, allowed: set[str]) -> dict:
    section = raw.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"Config section '{name}' must be a mapping")
    unknown = sorted(set(section) - allowed)
    if unknown:
        raise ValueError(f"Unknown keys in config section '{name}': {', '.join(unknown)}")
    return dict(section)


def build_config(raw: dict | None = None, **overrides: Any) -> EngineConfig:
    """Merge a loaded config dict with CLI overrides; None overrides are ignored.

    Override keys are ``max_depth``, ``time_budget``, ``cache_dir``, ``host`` and ``port``.
    """
    raw = raw or {}
    unknown = sorted(set(raw) - {"solver", "tables", "server"})
    if unknown:
        raise ValueError(f"Unknown config sections: {', '.join(unknown)}")

    solver = _section(raw, "solver", {f.name for f in fields(SolverOptions)})
    tables = _section(raw, "tables", {"cache_dir"})
    server = _section(raw, "server", {"host", "port"})

    for key in ("max_depth", "time_budget"):
        if overrides.get(key) is not None:
            solver[key] = overrides[key]
    if overrides.get("cache_dir") is not None:
        tables["cache_dir"] = overrides["cache_dir"]
    for key in ("host", "port"):
        if overrides.get(key) is not None:
            server[key] = overrides[key]

    cache_dir = tables.get("cache_dir")
    return EngineConfig(
        solver=SolverOptions(**solver),
        cache_dir=None if cache_dir is None else str(cache_dir),
        server=ServerConfig(host=str(server.get("host", "127.0.0.1")), port=int(server.get("port", 8000))),
    )
