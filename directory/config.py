"""Configuration management for the user directory service."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml
from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from .schemas import UserCreate, format_validation_errors

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 5000
DEFAULT_SERVICE_URL = "http://localhost:5000"


def _env_flag(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Runtime settings resolved from the environment."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    seed_sample_users: bool = True
    seed_file: Optional[Path] = None
    log_level: str = "INFO"
    service_url: str = DEFAULT_SERVICE_URL


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build :class:`Settings` from ``environ`` (defaults to ``os.environ``)."""

    env = os.environ if environ is None else environ

    raw_port = env.get("DIRECTORY_PORT")
    try:
        port = int(raw_port) if raw_port else DEFAULT_PORT
    except ValueError as exc:
        raise ValueError(f"DIRECTORY_PORT must be an integer, got {raw_port!r}") from exc

    seed_file = env.get("DIRECTORY_SEED_FILE")
    service_url = (env.get("DIRECTORY_SERVICE_URL") or DEFAULT_SERVICE_URL).strip().rstrip("/")

    return Settings(
        host=(env.get("DIRECTORY_HOST") or DEFAULT_HOST).strip(),
        port=port,
        seed_sample_users=_env_flag(env.get("DIRECTORY_SEED_SAMPLE_USERS"), True),
        seed_file=resolve_seed_path(seed_file) if seed_file else None,
        log_level=(env.get("DIRECTORY_LOG_LEVEL") or "INFO").strip().upper(),
        service_url=service_url or DEFAULT_SERVICE_URL,
    )


def resolve_seed_path(value: str) -> Path:
    """Resolve the path to a YAML seed file."""

    return Path(value).expanduser().resolve(strict=False)


def _seed_record_from_dict(data: Mapping[str, Any], position: int) -> Dict[str, Any]:
    known = set(UserCreate.model_fields)
    known.update(to_camel(name) for name in UserCreate.model_fields)

    item: Dict[str, Any] = {}
    for key, value in data.items():
        key = str(key)
        if key == "id":
            continue
        if key not in known:
            raise ValueError(f"Unknown field '{key}' in seed file")
        # YAML reads bare numbers such as years and phone numbers as ints.
        if value is None or key in ("work_experience", "workExperience"):
            item[key] = value
        else:
            item[key] = str(value)

    try:
        payload = UserCreate.model_validate(item)
    except ValidationError as exc:
        raise ValueError(
            f"Invalid user #{position} in seed file: {format_validation_errors(exc.errors())}"
        ) from exc
    return payload.to_store_fields()


def load_seed_users(path: Path) -> List[Dict[str, Any]]:
    """Load sample user records from a YAML file.

    The file must define a top-level ``users`` list. Keys may be written in
    either the wire's camelCase or snake_case.
    """

    with path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}

    if not isinstance(raw, dict):
        raise ValueError("Seed file must contain a mapping with a 'users' key")
    users_raw = raw.get("users")
    if users_raw is None:
        raise ValueError("Seed file must define users under the 'users' key")
    if not isinstance(users_raw, list):
        raise ValueError("The 'users' key in the seed file must be a list")

    records = []
    for position, item in enumerate(users_raw, start=1):
        if not isinstance(item, dict):
            raise ValueError("Each seeded user must be a mapping of fields")
        records.append(_seed_record_from_dict(item, position))
    return records


__all__ = [
    "DEFAULT_HOST",
    "DEFAULT_PORT",
    "DEFAULT_SERVICE_URL",
    "Settings",
    "load_seed_users",
    "load_settings",
    "resolve_seed_path",
]
