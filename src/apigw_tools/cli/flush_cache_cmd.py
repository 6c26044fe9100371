"""``apigw-tools aws api-gateway flush-cache`` command."""

from __future__ import annotations

import click

from apigw_tools.cli import (
    api_gateway,
    console,
    env_view,
    first,
    get_tools,
    plugin_config,
    reported_errors,
)
from apigw_tools.config import FlushCacheDefaults
from apigw_tools.env_file import dotenv_expand


@api_gateway.command("flush-cache")
@click.option("--api-id", default=None, help="REST API id (supports $VAR expansion) (default: config, else $API_ID).")
@click.option("--api-name", default=None, help="REST API name (supports $VAR expansion) (default: config, else $API_NAME).")
@click.option("--stage-name", default=None, help="Stage name (supports $VAR expansion) (default: config, else $STAGE_NAME).")
@click.pass_context
def flush_cache(
    ctx: click.Context,
    api_id: str | None,
    api_name: str | None,
    stage_name: str | None,
) -> None:
    """Flush a REST API stage cache.

    The API is selected by id when one resolves (flag, config, or $API_ID),
    otherwise by name. --api-id and --api-name cannot be combined.
    """
    if api_id is not None and api_name is not None:
        raise click.UsageError("--api-id and --api-name are mutually exclusive.")

    cfg = plugin_config(ctx)
    defaults = cfg.flush_cache or FlushCacheDefaults()
    env_ref = env_view(ctx)

    stage = dotenv_expand(
        first(stage_name, defaults.stage_name, cfg.stage_name, "$STAGE_NAME"), env_ref
    )
    if not stage:
        raise click.ClickException("stage-name is required.")

    # A resolvable id always wins, even over an explicit --api-name.
    resolved_id = dotenv_expand(first(api_id, defaults.api_id, cfg.api_id, "$API_ID"), env_ref)

    tools = get_tools(ctx)
    with reported_errors():
        if resolved_id:
            console.print(f"Flushing API Gateway cache for apiId '{resolved_id}'...")
            tools.flush_stage_cache(resolved_id, stage)
            console.print("[green]Done.[/green]")
            return

        resolved_name = dotenv_expand(
            first(api_name, defaults.api_name, cfg.api_name, "$API_NAME"), env_ref
        )
        if not resolved_name:
            raise click.ClickException("api-id or api-name is required (via flags or env/config).")

        console.print(f"Flushing API Gateway cache for '{resolved_name}'...")
        result = tools.flush_stage_cache_by_name(resolved_name, stage)
        console.print(f"[green]Done. (apiId={result.api_id})[/green]")
