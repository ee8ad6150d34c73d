"""Serve command -- run the HTTP service with uvicorn."""

from __future__ import annotations

from typing import Optional

import typer


def serve_command(
    ctx: typer.Context,
    host: Optional[str] = typer.Option(None, "--host", help="Bind address."),
    port: Optional[int] = typer.Option(None, "--port", help="Bind port."),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Service log level."),
    reload: bool = typer.Option(False, "--reload", help="Restart on code changes."),
) -> None:
    """Run the specshift HTTP service.

    Flags override ``SPECSHIFT_*`` environment variables, which override
    ``./specshift.json``, which overrides the user config.

    Example::

        specshift serve
        specshift serve --host 0.0.0.0 --port 8080
    """
    from specshift.config import resolve_config
    from specshift.output import info, setup_logging
    from specshift.web.main import run

    config = resolve_config(cli_host=host, cli_port=port, cli_log_level=log_level)
    no_color = ctx.obj.get("no_color", False) if ctx.obj else False
    setup_logging(config.log_level, no_color=no_color)

    info(f"Serving on http://{config.host}:{config.port}")
    run(config, reload=reload)
