"""Helpers for loading runtime configuration profiles."""
from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .errors import ConfigError, PatternError
from .models import GlobalSettings, ProfileSettings, RuntimeConfig

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "defaults.json"
DEFAULT_PROFILE = "default"
ALLOWED_ERROR_POLICIES = {"fail-fast", "strict", "replace"}


@dataclass(slots=True)
class ConfigDocument:
    source: Path
    version: int
    global_settings: GlobalSettings
    profiles: Dict[str, ProfileSettings]


def load_runtime_config(
    profile: str = DEFAULT_PROFILE,
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Dict[str, Any]]] = None,
) -> RuntimeConfig:
    """Load configuration JSON, validate it, and resolve a specific profile."""

    document = load_config_document(
        profile_name=profile,
        config_path=config_path,
        overrides=overrides,
    )
    return RuntimeConfig(global_settings=document.global_settings, profile=document.profiles[profile])


def load_config_document(
    *,
    profile_name: Optional[str] = None,
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Dict[str, Any]]] = None,
) -> ConfigDocument:
    cfg_path = config_path or DEFAULT_CONFIG_PATH
    raw = _read_config_json(cfg_path)

    version = _require_positive_int(raw.get("version"), "version", cfg_path)
    global_section = raw.get("global")
    if not isinstance(global_section, Mapping):
        raise ConfigError(f"'global' section missing in {cfg_path}")

    overrides = overrides or {}
    global_data = {**global_section, **(overrides.get("global") or {})}
    global_settings = _build_global_settings(global_data, cfg_path)

    profiles_section = raw.get("profiles")
    if not isinstance(profiles_section, Mapping) or not profiles_section:
        raise ConfigError(f"'profiles' section missing in {cfg_path}")

    profile_overrides = overrides.get("profile") or {}
    profiles: Dict[str, ProfileSettings] = {}
    for name, profile_data in profiles_section.items():
        if not isinstance(profile_data, Mapping):
            raise ConfigError(f"Profile '{name}' must be an object in {cfg_path}")
        merged = dict(profile_data)
        if profile_name and name == profile_name and profile_overrides:
            merged = {**merged, **profile_overrides}
        profiles[name] = _build_profile_settings(name, merged, cfg_path)

    if profile_name and profile_name not in profiles:
        raise ConfigError(
            f"Profile '{profile_name}' not found in {cfg_path}",
            context={"available": sorted(profiles)},
        )

    return ConfigDocument(
        source=cfg_path,
        version=version,
        global_settings=global_settings,
        profiles=profiles,
    )


def error_mode_from_policy(policy: str) -> str:
    """Translate human-friendly error policy into Python's encoding error handler."""

    return "strict" if policy.lower() in {"fail-fast", "strict"} else "replace"


# ---------------------------------------------------------------------------
# Internal helpers


def _read_config_json(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file '{path}' not found") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config file '{path}' is not valid JSON: {exc}") from exc


def _build_global_settings(data: Mapping[str, Any], source: Path) -> GlobalSettings:
    defaults = GlobalSettings()
    encoding = _require_string(data.get("encoding", defaults.encoding), "global.encoding", source)
    error_policy = _normalize_error_policy(data.get("error_policy", defaults.error_policy), source)
    source_suffix = _require_string(
        data.get("source_suffix", defaults.source_suffix), "global.source_suffix", source
    )
    if not source_suffix.startswith("."):
        raise ConfigError(f"global.source_suffix must start with '.' in {source}")
    block_pattern = _require_pattern(
        data.get("block_pattern", defaults.block_pattern), "global.block_pattern", source
    )
    terminator = _require_string(
        data.get("statement_terminator", defaults.statement_terminator),
        "global.statement_terminator",
        source,
    )
    listener_host = _require_string(
        data.get("listener_host", defaults.listener_host), "global.listener_host", source
    )
    listener_port = _require_port(data.get("listener_port", defaults.listener_port), source)
    listener_max_workers = _require_positive_int(
        data.get("listener_max_workers", defaults.listener_max_workers),
        "global.listener_max_workers",
        source,
    )
    default_output = _require_string(
        data.get("default_output", defaults.default_output), "global.default_output", source
    )
    return GlobalSettings(
        encoding=encoding,
        error_policy=error_policy,
        source_suffix=source_suffix,
        block_pattern=block_pattern,
        statement_terminator=terminator,
        listener_host=listener_host,
        listener_port=listener_port,
        listener_max_workers=listener_max_workers,
        default_output=default_output,
    )


def _build_profile_settings(name: str, data: Mapping[str, Any], source: Path) -> ProfileSettings:
    prefix = f"profiles.{name}"
    if "description" not in data:
        raise ConfigError(f"Profile '{name}' missing fields ['description'] in {source}")

    return ProfileSettings(
        description=_require_string(data.get("description"), f"{prefix}.description", source),
        count_blank_lines_in_block=_require_bool(
            data.get("count_blank_lines_in_block", True),
            f"{prefix}.count_blank_lines_in_block",
            source,
        ),
        instrument=_require_bool(data.get("instrument", False), f"{prefix}.instrument", source),
        follow_symlinks=_require_bool(
            data.get("follow_symlinks", False), f"{prefix}.follow_symlinks", source
        ),
    )


def _normalize_error_policy(value: Any, source: Path) -> str:
    policy = _require_string(value, "global.error_policy", source).lower()
    if policy not in ALLOWED_ERROR_POLICIES:
        allowed = ", ".join(sorted(ALLOWED_ERROR_POLICIES))
        raise ConfigError(f"Unsupported error_policy '{value}' in {source}. Allowed: {allowed}")
    return "fail-fast" if policy in {"fail-fast", "strict"} else "replace"


def _require_pattern(value: Any, field: str, source: Path) -> str:
    pattern = _require_string(value, field, source)
    try:
        re.compile(pattern)
    except re.error as exc:
        raise PatternError(
            f"{field} is not a valid regular expression in {source}: {exc}",
            context={"pattern": pattern},
        ) from exc
    return pattern


def _require_string(value: Any, field: str, source: Path) -> str:
    if not isinstance(value, str):
        raise ConfigError(f"{field} must be a string in {source}")
    text = value.strip()
    if not text:
        raise ConfigError(f"{field} must be non-empty in {source}")
    return text


def _require_bool(value: Any, field: str, source: Path) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"{field} must be true or false in {source}")
    return value


def _require_port(value: Any, source: Path) -> int:
    try:
        port = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"global.listener_port must be an integer in {source}") from exc
    if not 0 <= port <= 65535:
        raise ConfigError(f"global.listener_port must be between 0 and 65535 in {source}")
    return port


def _require_positive_int(value: Any, field: str, source: Path) -> int:
    try:
        num = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{field} must be an integer in {source}") from exc
    if num <= 0:
        raise ConfigError(f"{field} must be greater than zero in {source}")
    return num
