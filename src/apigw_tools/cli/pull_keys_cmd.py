# Copyright (c) 2026 Ramin Firoozye
# SPDX-License-Identifier: AGPL-3.0-or-later

"""``apigw-tools aws api-gateway pull-keys`` command."""

from __future__ import annotations

import click

from apigw_tools.cli import (
    _ensure_obj,
    api_gateway,
    console,
    effective_env,
    env_view,
    first,
    get_tools,
    plugin_config,
    reported_errors,
)
from apigw_tools.config import PullKeysDefaults
from apigw_tools.env_file import (
    DEFAULT_TEMPLATE_EXTENSION,
    dotenv_expand,
    edit_dotenv_file,
    parse_to_selector,
)
from apigw_tools.errors import SelectorError

DEFAULT_VARIABLE_NAME = "API_KEYS"
DEFAULT_DELIMITER = ", "
DEFAULT_TO = "env:private"


@api_gateway.command("pull-keys")
@click.argument("extra_names", metavar="[KEY_NAME]...", nargs=-1)
@click.option(
    "--key-names", multiple=True,
    help="API key names, space-delimited or repeated (supports $VAR expansion per name) (default: from config).",
)
@click.option("--variable-name", default=None, help=f"Dotenv variable to write (default: {DEFAULT_VARIABLE_NAME}).")
@click.option("--delimiter", default=None, help=f"Delimiter for joining key values (default: {DEFAULT_DELIMITER!r}).")
@click.option(
    "--to", "to", default=None,
    help=f"Destination dotenv selector (global|env):(public|private) (default: {DEFAULT_TO}).",
)
@click.option(
    "--template-extension", "-t", default=None,
    help=f"Template extension used when the target file is missing (default: {DEFAULT_TEMPLATE_EXTENSION}).",
)
@click.pass_context
def pull_keys(
    ctx: click.Context,
    extra_names: tuple[str, ...],
    key_names: tuple[str, ...],
    variable_name: str | None,
    delimiter: str | None,
    to: str | None,
    template_extension: str | None,
) -> None:
    """Write API key values into a dotenv variable (delimiter-joined).

    Any missing or ambiguous key name aborts the command before the file is touched.
    """
    obj = _ensure_obj(ctx)
    cfg = plugin_config(ctx)
    defaults = cfg.pull_keys or PullKeysDefaults()

    try:
        selector = parse_to_selector(first(to, defaults.to, DEFAULT_TO))
    except SelectorError as e:
        raise click.UsageError(str(e))

    env = effective_env(ctx)
    if selector.scope == "env" and not env:
        raise click.UsageError("env is required (use --env or default_env).")

    raw_names = [name for value in key_names for name in value.split()] + list(extra_names)
    if not raw_names:
        raw_names = list(defaults.key_names or [])
    if not raw_names:
        raise click.UsageError("key-names is required.")

    env_ref = env_view(ctx)
    names: list[str] = []
    for raw in raw_names:
        expanded = dotenv_expand(raw, env_ref)
        if not expanded:
            raise click.UsageError("key-names contains an empty value after expansion.")
        names.append(expanded)

    variable = first(variable_name, defaults.variable_name, DEFAULT_VARIABLE_NAME)
    sep = first(delimiter, defaults.delimiter, DEFAULT_DELIMITER)
    extension = first(template_extension, cfg.template_extension, DEFAULT_TEMPLATE_EXTENSION)

    tools = get_tools(ctx)
    with reported_errors():
        console.print(f"Retrieving {len(names)} API key(s) from API Gateway...")
        values = tools.get_api_key_values_by_names(names)
        result = edit_dotenv_file(
            {variable: sep.join(values)},
            paths=obj["paths"],
            scope=selector.scope,
            privacy=selector.privacy,
            env=env,
            dotenv_token=obj["dotenv_token"],
            private_token=obj["private_token"],
            template_extension=extension,
        )

    if result.created_from_template:
        console.print(f"[dim]Bootstrapped from template {result.path}.{extension}[/dim]")
    console.print(f"[green]Updated {result.path}[/green]")
