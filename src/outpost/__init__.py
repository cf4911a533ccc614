"""outpost -- Report installation metadata to a remote check-in endpoint.

The check-in is a single JSON POST describing the installation (license key,
host, installed package versions). Its classified outcome is cached with a
TTL that depends on the outcome, keyed by the payload itself, so repeated
calls do not hit the network until the payload changes or the entry expires.

Typical usage::

    outpost status        # check in (or reuse the cached result)
    outpost cache clear   # force the next call to go to the network

Modules:
    app: Typer application and CLI entry point.
    checkin: The caching check-in client.
    payload: Deterministic payload construction.
    router: ``handle::id`` entity lookup across named repositories. Its
        public names are re-exported here for library use.
    models: Pydantic models shared across the entire package.
    config: XDG-aware configuration management.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

from outpost.router import DataRepository, Repository, split_reference

__version__ = "0.1.0"

__all__ = ["DataRepository", "Repository", "split_reference", "__version__"]
