from __future__ import annotations

import importlib.metadata as md
from pathlib import Path

import typer
from rich.console import Console

from .config import RelayAppConfig, load_config, resolve_config_path
from .logging_setup import configure_logging

# Typer application: tests import this
app = typer.Typer(no_args_is_help=True, add_completion=False, help="gpsrelay CLI")
console = Console()


def _bind_to_url(host: str, port: int, path: str = "", scheme: str = "http") -> str:
    # If bound to 0.0.0.0 / ::, show localhost for a clickable URL.
    safe_host = "127.0.0.1" if host in ("0.0.0.0", "::") else host
    return f"{scheme}://{safe_host}:{port}{path}"


def _load(path: Path | None) -> tuple[Path, RelayAppConfig]:
    resolved = resolve_config_path(path)
    if not resolved.exists():
        console.print(f"Config {resolved} not found, using defaults")
        return resolved, RelayAppConfig()
    return resolved, load_config(resolved)


@app.command()
def version() -> None:
    """Print version information."""
    try:
        dist_version = md.version("gpsrelay")
    except md.PackageNotFoundError:
        from . import __version__

        dist_version = __version__
    console.print(f"gpsrelay {dist_version}")


@app.command(name="config-validate")
def config_validate(path: Path = typer.Argument(Path("configs/gpsrelay.yml"))) -> None:
    """Validate and show resolved configuration."""
    resolved = resolve_config_path(path)
    console.print(f"Using config: {resolved}")
    try:
        cfg = load_config(resolved)
    except (OSError, ValueError) as exc:
        console.print(f"Config validation failed: {exc}", markup=False)
        raise typer.Exit(code=1) from exc
    console.print("Config OK.")
    console.print(f"- gps: {'mock' if cfg.gps.mock_mode else f'{cfg.gps.host}:{cfg.gps.port}'}")
    console.print(f"- publish every: {cfg.relay.publish_interval_secs}s as '{cfg.relay.module_id}'")
    console.print(f"- web: {_bind_to_url(cfg.web.bind_host, cfg.web.bind_port)}")


@app.command(name="config-which")
def config_which(path: Path = typer.Option(Path("configs/gpsrelay.yml"), "--config", "-c")) -> None:
    """Print resolved config path by priority rules."""
    console.print(str(resolve_config_path(path)))


@app.command()
def run(
    config: Path = typer.Option(Path("configs/gpsrelay.yml"), "--config", "-c"),
    host: str | None = typer.Option(None, "--host"),
    port: int | None = typer.Option(None, "--port"),
    mock: bool = typer.Option(False, "--mock", help="Use the simulated GPS feed"),
) -> None:
    """Start the relay server using CONFIG."""
    try:
        resolved, cfg = _load(config)
    except ValueError as exc:
        console.print(f"Config validation failed: {exc}", markup=False)
        raise typer.Exit(code=1) from exc
    console.print(f"Using config: {resolved}")

    if host:
        cfg.web.bind_host = host
    if port:
        cfg.web.bind_port = port
    if mock:
        cfg.gps.mock_mode = True

    configure_logging(cfg.logging)

    import uvicorn

    from .apps.web import create_app

    console.print(f"Viewer page: {_bind_to_url(cfg.web.bind_host, cfg.web.bind_port, '/')}")
    console.print(f"WebSocket:   {_bind_to_url(cfg.web.bind_host, cfg.web.bind_port, cfg.web.ws_path, 'ws')}")
    uvicorn.run(
        create_app(cfg),
        host=cfg.web.bind_host,
        port=cfg.web.bind_port,
        log_config=None,
        access_log=False,
    )


cli = typer.main.get_command(app)


if __name__ == "__main__":
    app()
