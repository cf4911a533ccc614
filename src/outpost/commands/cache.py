"""Cache commands -- inspect or clear the cached check-in result.

``outpost cache clear`` is the operator-triggered invalidation: the next
``outpost status`` (or any :meth:`~outpost.checkin.CheckInClient.status`
call sharing the cache directory) goes to the network.
"""

from __future__ import annotations

from datetime import datetime, timezone

import typer

from outpost.output import format_response, info, success

cache_app = typer.Typer(no_args_is_help=True)


@cache_app.command("clear")
def cache_clear(ctx: typer.Context) -> None:
    """Delete the cached check-in result.

    Safe to run when nothing is cached.

    Example::

        outpost cache clear
    """
    from outpost.checkin import open_client
    from outpost.commands.checkin import resolve_from_context

    with open_client(resolve_from_context(ctx)) as client:
        client.clear_cache()
    success("Check-in cache cleared.")


@cache_app.command("show")
def cache_show(ctx: typer.Context) -> None:
    """Show the cached check-in entry and whether it is still valid.

    Example::

        outpost cache show --json
    """
    from outpost.checkin import open_client
    from outpost.commands.checkin import resolve_from_context

    with open_client(resolve_from_context(ctx)) as client:
        entry = client.cached_entry()
        if entry is None:
            info("No cached check-in result.")
            return
        valid = entry.is_valid_for(client.payload(), datetime.now(timezone.utc).timestamp())

    expires = datetime.fromtimestamp(entry.expires_at, tz=timezone.utc)
    info(f"Expires: {expires.isoformat()} ({'valid' if valid else 'stale'})")
    data = entry.model_dump(mode="json")
    data["valid"] = valid
    format_response(data)
