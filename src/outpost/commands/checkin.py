"""Check-in commands -- run a check-in or preview its payload.

``outpost status`` reuses the cached result when it is still valid for the
current payload, so running it from cron or a deploy hook is cheap.
``outpost payload`` prints what would be sent without touching the network
or the cache.
"""

from __future__ import annotations

from typing import Optional

import typer

from outpost.models import GlobalConfig
from outpost.output import format_response


def resolve_from_context(ctx: typer.Context) -> GlobalConfig:
    """Resolve the effective config, honouring the global ``--endpoint`` flag."""
    from outpost.config import resolve_config

    endpoint: Optional[str] = ctx.obj.get("endpoint") if ctx.obj else None
    return resolve_config(cli_endpoint=endpoint)


def status_command(
    ctx: typer.Context,
    fresh: bool = typer.Option(
        False, "--fresh", help="Clear the cached result before checking in."
    ),
) -> None:
    """Check in with the endpoint and show the result.

    Exits with code 0 for every classified result, including validation
    errors and rate limiting. Unclassified HTTP failures exit with code 5.

    Example::

        outpost status
        outpost status --fresh --json
    """
    from outpost.checkin import open_client
    from outpost.client.response import format_result

    config = resolve_from_context(ctx)
    with open_client(config) as client:
        if fresh:
            client.clear_cache()
        result = client.status()
    format_result(result)


def payload_command(ctx: typer.Context) -> None:
    """Show the payload that a check-in would send.

    Example::

        outpost payload --json
    """
    from outpost.payload import PayloadBuilder

    config = resolve_from_context(ctx)
    format_response(PayloadBuilder(config).build())
