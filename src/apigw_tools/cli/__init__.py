# Copyright (c) 2026 Ramin Firoozye
# SPDX-License-Identifier: AGPL-3.0-or-later

"""apigw-tools CLI -- AWS API Gateway helpers on top of dotenv files.

Command tree::

    apigw-tools [root options] aws [--profile] [--region] [--xray] api-gateway flush-cache|pull-keys

The ``cli`` root group, the ``aws`` group, the ``api-gateway`` plugin group
and the shared helpers (``console``, ``get_tools``, ``env_view`` ...) live
here so every command module can import them.

``api_gateway`` can also be mounted into another click host
(``host.add_command(api_gateway)``). Everything the commands need is read
from ``ctx.obj``; keys the host does not provide are filled with defaults.
"""

from __future__ import annotations

import contextlib
import logging
import os
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import click
from botocore.exceptions import BotoCoreError, ClientError
from rich.console import Console
from rich.logging import RichHandler

from apigw_tools import __version__
from apigw_tools.config import ApiGatewayPluginConfig, ToolsConfig, load_config
from apigw_tools.env_file import build_spawn_env, load_dotenv_cascade
from apigw_tools.errors import ApiGatewayToolsError
from apigw_tools.tools import AwsApiGatewayTools

LOG = logging.getLogger("apigw_tools")

console = Console(stderr=True)

ENV_VAR_ENV = "APIGW_TOOLS_ENV"


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

def _setup_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load_config(path: Path | None = None) -> ToolsConfig:
    try:
        return load_config(path)
    except ValueError as e:
        raise click.UsageError(f"Invalid config: {e}")


def _ensure_obj(ctx: click.Context) -> dict[str, Any]:
    """Fill in whatever the host did not put in ``ctx.obj``."""
    obj = ctx.ensure_object(dict)
    if "config" not in obj:
        obj["config"] = _load_config()
    cfg: ToolsConfig = obj["config"]
    obj.setdefault("paths", cfg.paths)
    obj.setdefault("dotenv_token", cfg.dotenv_token)
    obj.setdefault("private_token", cfg.private_token)
    obj.setdefault("env", os.environ.get(ENV_VAR_ENV) or None)
    obj.setdefault("default_env", cfg.default_env)
    obj.setdefault("profile", cfg.aws_profile)
    obj.setdefault("region", cfg.aws_region)
    obj.setdefault("xray", cfg.xray)
    obj.setdefault("debug", False)
    obj.setdefault("tools_factory", AwsApiGatewayTools)
    return obj


def plugin_config(ctx: click.Context) -> ApiGatewayPluginConfig:
    return _ensure_obj(ctx)["config"].plugin


def effective_env(ctx: click.Context) -> str | None:
    obj = _ensure_obj(ctx)
    return obj["env"] or obj["default_env"]


def env_view(ctx: click.Context) -> dict[str, str]:
    """Process environment overridden by the dotenv cascade for this invocation."""
    obj = _ensure_obj(ctx)
    if obj.get("dotenv") is None:
        obj["dotenv"] = load_dotenv_cascade(
            obj["paths"],
            env=effective_env(ctx),
            dotenv_token=obj["dotenv_token"],
            private_token=obj["private_token"],
        )
    return build_spawn_env(os.environ, obj["dotenv"])


def get_tools(ctx: click.Context) -> AwsApiGatewayTools:
    """Build a fresh tools facade for this command run."""
    obj = _ensure_obj(ctx)
    factory = obj["tools_factory"]
    try:
        return factory(
            profile=obj["profile"],
            region=obj["region"],
            xray=obj["xray"],
            logger=LOG,
        )
    except (ApiGatewayToolsError, ValueError, RuntimeError) as e:
        raise click.ClickException(str(e))


@contextlib.contextmanager
def reported_errors() -> Iterator[None]:
    """Turn library and AWS errors into a ClickException (exit code 1)."""
    try:
        yield
    except (ApiGatewayToolsError, BotoCoreError, ClientError) as e:
        LOG.debug("command failed", exc_info=True)
        raise click.ClickException(str(e))


def first(*values: Any) -> Any:
    """Return the first value that is not ``None``."""
    for value in values:
        if value is not None:
            return value
    return None


# ---------------------------------------------------------------------------
# Click groups
# ---------------------------------------------------------------------------

@click.group()
@click.option("--paths", default=None, help="Space-delimited dotenv search paths (default: config, else ./).")
@click.option("--env", "-e", "env_name", default=None, help=f"Environment name (default: {ENV_VAR_ENV}).")
@click.option("--default-env", default=None, help="Environment used when --env is not given (default: from config).")
@click.option("--dotenv-token", default=None, help="Dotenv file name token (default: .env).")
@click.option("--private-token", default=None, help="Private dotenv suffix (default: local).")
@click.option(
    "--config", "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: nearest .apigw-tools.toml/.yaml).",
)
@click.option("--debug", is_flag=True, help="Debug logging (including AWS calls).")
@click.version_option(__version__)
@click.pass_context
def cli(
    ctx: click.Context,
    paths: str | None,
    env_name: str | None,
    default_env: str | None,
    dotenv_token: str | None,
    private_token: str | None,
    config_path: Path | None,
    debug: bool,
) -> None:
    """Dotenv-aware helpers for AWS API Gateway."""
    _setup_logging(debug)
    obj = ctx.ensure_object(dict)
    if "config" not in obj or config_path is not None:
        obj["config"] = _load_config(config_path)
    if paths is not None:
        obj["paths"] = paths.split() or ["./"]
    if env_name is not None:
        obj["env"] = env_name
    if default_env is not None:
        obj["default_env"] = default_env
    if dotenv_token is not None:
        obj["dotenv_token"] = dotenv_token
    if private_token is not None:
        obj["private_token"] = private_token
    obj["debug"] = debug
    _ensure_obj(ctx)


@cli.group()
@click.option("--profile", default=None, help="AWS profile (default: from config or AWS environment).")
@click.option("--region", default=None, help="AWS region (default: from config or AWS environment).")
@click.option(
    "--xray",
    type=click.Choice(["auto", "on", "off"]),
    default=None,
    help="X-Ray capture: auto (when AWS_XRAY_DAEMON_ADDRESS is set), on, or off.",
)
@click.pass_context
def aws(ctx: click.Context, profile: str | None, region: str | None, xray: str | None) -> None:
    """AWS commands."""
    obj = _ensure_obj(ctx)
    if profile is not None:
        obj["profile"] = profile
    if region is not None:
        obj["region"] = region
    if xray is not None:
        obj["xray"] = xray


@aws.group("api-gateway")
@click.pass_context
def api_gateway(ctx: click.Context) -> None:
    """AWS API Gateway helpers (REST APIs)."""
    _ensure_obj(ctx)


# ---------------------------------------------------------------------------
# Register all command modules (import triggers @api_gateway.command registration)
# ---------------------------------------------------------------------------

from apigw_tools.cli import (  # noqa: E402, F401
    flush_cache_cmd,
    pull_keys_cmd,
)
