"""Built-in CLI sub-commands for outpost.

* :mod:`~outpost.commands.checkin` -- ``status`` and ``payload``.
* :mod:`~outpost.commands.cache` -- inspect or clear the cached result.
* :mod:`~outpost.commands.config` -- view and modify global settings.

Multi-command groups export a :class:`typer.Typer` sub-application; single
commands are plain callbacks registered directly on the root app.
"""
