from __future__ import annotations

import os
import shlex
from dataclasses import fields
from pathlib import Path
from typing import Any, Mapping

try:
    import tomllib  # py311+
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib  # type: ignore

import yaml

from ..contracts.ids import CONFIG
from ..contracts.validate import validate
from ..core.errors import ConfigError, ScriptError
from .model import VerifyConfig

DEFAULT_CONFIG_FILES = ("snipctl.toml", "pyproject.toml", "snipctl.yaml", "snipctl.yml")
_ENV_KEYS = {"SNIPCTL_TIMEOUT": ("timeout", float), "SNIPCTL_JOBS": ("jobs", int)}


def _read_file(path: Path) -> dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"cannot read config file {path}: {exc}") from exc
    try:
        if path.suffix in {".yaml", ".yml"}:
            payload = yaml.safe_load(text) or {}
        else:
            payload = tomllib.loads(text)
            if path.name == "pyproject.toml":
                payload = payload.get("tool", {}).get("snipctl", {})
    except (tomllib.TOMLDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"cannot parse config file {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise ConfigError(f"config file {path} must contain a mapping")
    try:
        validate(CONFIG, payload)
    except ScriptError as exc:
        raise ConfigError(f"{path}: {exc.message}") from exc
    return payload


def discover_config_file(cwd: Path) -> Path | None:
    for name in DEFAULT_CONFIG_FILES:
        candidate = cwd / name
        if not candidate.is_file():
            continue
        if name == "pyproject.toml" and not _read_file(candidate):
            continue
        return candidate
    return None


def _from_env(environ: Mapping[str, str]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for key, (name, cast) in _ENV_KEYS.items():
        raw = environ.get(key, "").strip()
        if not raw:
            continue
        try:
            values[name] = cast(raw)
        except ValueError as exc:
            raise ConfigError(f"invalid {key}={raw!r}: {exc}") from exc
    return values


def _normalize(values: dict[str, Any]) -> dict[str, Any]:
    out = dict(values)
    command = out.get("command")
    if isinstance(command, str):
        out["command"] = tuple(shlex.split(command))
    elif command is not None:
        out["command"] = tuple(str(item) for item in command)
    if "globs" in out:
        out["globs"] = tuple(str(item) for item in out["globs"])
    if "timeout" in out:
        out["timeout"] = float(out["timeout"])
    return out


def load_config(
    cwd: Path,
    config_path: str | None = None,
    overrides: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
) -> VerifyConfig:
    """Merge defaults, discovered or explicit config file, environment and CLI overrides."""
    merged: dict[str, Any] = {}
    path = cwd / config_path if config_path else discover_config_file(cwd)
    if path is not None and not path.is_file():
        raise ConfigError(f"config file not found: {config_path}")
    if path is not None:
        merged.update(_read_file(path))
    merged.update(_from_env(os.environ if environ is None else environ))
    merged.update({key: value for key, value in (overrides or {}).items() if value is not None})
    known = {f.name for f in fields(VerifyConfig)}
    unknown = sorted(set(merged) - known)
    if unknown:
        raise ConfigError(f"unknown config keys: {', '.join(unknown)}")
    return VerifyConfig(**_normalize(merged))
