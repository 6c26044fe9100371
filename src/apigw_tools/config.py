""".apigw-tools configuration loading.

Searches upward from cwd for ``.apigw-tools.toml`` (or ``.yaml``/``.yml``) and
deep-merges an optional ``.apigw-tools.local.<ext>`` sitting next to it.

Example::

    [apigw-tools]
    paths = ["./"]
    default_env = "dev"

    [apigw-tools.aws]
    profile = "dev"
    region = "us-east-1"

    [apigw-tools.plugins."aws/api-gateway"]
    api_name = "$API_NAME"
    stage_name = "$STAGE_NAME"

    [apigw-tools.plugins."aws/api-gateway".pull_keys]
    key_names = ["partner-a", "partner-b"]
    to = "env:private"
"""

from __future__ import annotations

import sys
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from apigw_tools.env_file import DEFAULT_DOTENV_TOKEN, DEFAULT_PRIVATE_TOKEN
from apigw_tools.errors import PluginConfigError

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

CONFIG_STEM = ".apigw-tools"
CONFIG_SECTION = "apigw-tools"
PLUGIN_KEY = "aws/api-gateway"
_EXTENSIONS = (".toml", ".yaml", ".yml")


@dataclass
class FlushCacheDefaults:
    """Defaults for ``api-gateway flush-cache``."""

    api_id: str | None = None
    api_name: str | None = None
    stage_name: str | None = None


@dataclass
class PullKeysDefaults:
    """Defaults for ``api-gateway pull-keys``."""

    key_names: list[str] | None = None
    variable_name: str | None = None
    delimiter: str | None = None
    to: str | None = None


@dataclass
class ApiGatewayPluginConfig:
    """Validated ``plugins."aws/api-gateway"`` section.

    String values may contain ``$VAR`` references; they are expanded when a
    command runs, not here.
    """

    api_id: str | None = None
    api_name: str | None = None
    stage_name: str | None = None
    template_extension: str | None = None
    flush_cache: FlushCacheDefaults | None = None
    pull_keys: PullKeysDefaults | None = None


@dataclass
class ToolsConfig:
    """Resolved configuration for the current invocation."""

    paths: list[str] = field(default_factory=lambda: ["./"])
    dotenv_token: str = DEFAULT_DOTENV_TOKEN
    private_token: str = DEFAULT_PRIVATE_TOKEN
    default_env: str | None = None
    aws_profile: str | None = None
    aws_region: str | None = None
    xray: str = "auto"
    plugin: ApiGatewayPluginConfig = field(default_factory=ApiGatewayPluginConfig)
    config_path: Path | None = None


# camelCase spellings used by get-dotenv style JSON/YAML configs
_ALIASES = {
    "apiId": "api_id",
    "apiName": "api_name",
    "stageName": "stage_name",
    "templateExtension": "template_extension",
    "flushCache": "flush_cache",
    "pullKeys": "pull_keys",
    "keyNames": "key_names",
    "variableName": "variable_name",
}


def _normalize(raw: Mapping[str, Any]) -> dict[str, Any]:
    return {_ALIASES.get(k, k): v for k, v in raw.items()}


def _take_strings(
    raw: Mapping[str, Any], names: tuple[str, ...], where: str, errors: list[str]
) -> dict[str, str | None]:
    out: dict[str, str | None] = {}
    for name in names:
        value = raw.get(name)
        if value is not None and not isinstance(value, str):
            errors.append(f"{where}{name}: expected string, got {type(value).__name__}")
            value = None
        out[name] = value
    return out


def _take_section(raw: Mapping[str, Any], name: str, errors: list[str]) -> dict[str, Any] | None:
    value = raw.get(name)
    if value is None:
        return None
    if not isinstance(value, Mapping):
        errors.append(f"{name}: expected table, got {type(value).__name__}")
        return None
    return _normalize(value)


def parse_plugin_config(raw: Mapping[str, Any] | None) -> ApiGatewayPluginConfig:
    """Validate the api-gateway plugin section and return it as a dataclass.

    Unknown keys are dropped silently. Fields of the wrong type are collected
    and reported together in a :class:`PluginConfigError`.
    """
    if raw is None:
        return ApiGatewayPluginConfig()
    if not isinstance(raw, Mapping):
        raise PluginConfigError([f"expected table, got {type(raw).__name__}"])

    errors: list[str] = []
    data = _normalize(raw)
    top = _take_strings(data, ("api_id", "api_name", "stage_name", "template_extension"), "", errors)

    flush_cache = None
    fc_raw = _take_section(data, "flush_cache", errors)
    if fc_raw is not None:
        flush_cache = FlushCacheDefaults(
            **_take_strings(fc_raw, ("api_id", "api_name", "stage_name"), "flush_cache.", errors)
        )

    pull_keys = None
    pk_raw = _take_section(data, "pull_keys", errors)
    if pk_raw is not None:
        key_names = pk_raw.get("key_names")
        if key_names is not None and (
            not isinstance(key_names, list) or not all(isinstance(k, str) for k in key_names)
        ):
            errors.append("pull_keys.key_names: expected list of strings")
            key_names = None
        pull_keys = PullKeysDefaults(
            key_names=key_names,
            **_take_strings(pk_raw, ("variable_name", "delimiter", "to"), "pull_keys.", errors),
        )

    if errors:
        raise PluginConfigError(errors)
    return ApiGatewayPluginConfig(flush_cache=flush_cache, pull_keys=pull_keys, **top)


def find_config_file(start: Path | None = None) -> Path | None:
    """Walk upward from *start* (default cwd) looking for ``.apigw-tools.{toml,yaml,yml}``."""
    cur = (start or Path.cwd()).resolve()
    while True:
        for ext in _EXTENSIONS:
            candidate = cur / f"{CONFIG_STEM}{ext}"
            if candidate.is_file():
                return candidate
        if cur.parent == cur:
            return None
        cur = cur.parent


def _read_file(path: Path) -> dict[str, Any]:
    text = path.read_text()
    if path.suffix == ".toml":
        return tomllib.loads(text)
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ValueError(f"{path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping")
    return data


def _deep_merge(base: dict[str, Any], overlay: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overlay.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = _deep_merge(dict(merged[key]), value)
        else:
            merged[key] = value
    return merged


def _local_overlay(path: Path) -> Path | None:
    for ext in _EXTENSIONS:
        candidate = path.with_name(f"{CONFIG_STEM}.local{ext}")
        if candidate.is_file():
            return candidate
    return None


def _as_paths(value: Any) -> list[str]:
    if value is None:
        return ["./"]
    if isinstance(value, str):
        return value.split() or ["./"]
    return [str(p) for p in value] or ["./"]


def load_config(path: Path | None = None) -> ToolsConfig:
    """Load and return config.  Returns defaults if no file found."""
    if path is None:
        path = find_config_file()
    if path is None:
        return ToolsConfig()

    raw = _read_file(path)
    local = _local_overlay(path)
    if local is not None:
        raw = _deep_merge(raw, _read_file(local))

    section = raw.get(CONFIG_SECTION) or {}
    aws = section.get("aws") or {}
    plugins = section.get("plugins") or {}

    return ToolsConfig(
        paths=_as_paths(section.get("paths")),
        dotenv_token=section.get("dotenv_token", DEFAULT_DOTENV_TOKEN),
        private_token=section.get("private_token", DEFAULT_PRIVATE_TOKEN),
        default_env=section.get("default_env"),
        aws_profile=aws.get("profile"),
        aws_region=aws.get("region"),
        xray=aws.get("xray", "auto"),
        plugin=parse_plugin_config(plugins.get(PLUGIN_KEY)),
        config_path=path,
    )
