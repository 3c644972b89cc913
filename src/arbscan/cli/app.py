"""Root CLI app - entry point and command registration."""

from pathlib import Path

import typer

from arbscan.config import configure_logging, get_settings

app = typer.Typer(
    name="arbscan",
    help="arbscan - Opinion / Probable market aggregation for arbitrage scanning.",
    no_args_is_help=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    config_dir: Path | None = typer.Option(
        None, "--config-dir", "-C", help="Config directory (default: ./config or package config)"
    ),
    profile: str | None = typer.Option(
        None, "--profile", "-p", help="Config profile (e.g. dev) to overlay on default.toml"
    ),
) -> None:
    """Configure logging and store options in context."""
    settings = get_settings(profile, config_dir)
    configure_logging(settings)
    ctx.obj = {"settings": settings, "config_dir": config_dir, "profile": profile}


# Subcommands registered from other modules
from arbscan.cli import api_cmd, scan  # noqa: E402

app.add_typer(api_cmd.app, name="serve")
app.command("scan")(scan.scan)
app.add_typer(scan.markets_app, name="markets")


def run() -> None:
    app()


if __name__ == "__main__":
    run()
