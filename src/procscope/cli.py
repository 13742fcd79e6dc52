"""Command-line entry point for procscope."""

from pathlib import Path

import click

from procscope import __version__


@click.command()
@click.argument("pid", type=int, required=False)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: ~/.config/procscope/config.toml)",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Where to write the JSON log (default: ~/.local/state/procscope/procscope.log)",
)
@click.option("--tick", type=float, default=None, help="Seconds between refreshes")
@click.version_option(__version__)
def main(pid: int | None, config_path: Path | None, log_file: Path | None, tick: float | None) -> None:
    """Inspect a single process: PID defaults to procscope itself."""
    from procscope import log
    from procscope.app import ProcscopeApp
    from procscope.config import Config
    from procscope.errors import SnapshotError
    from procscope.source import ProcessHandle

    try:
        config = Config.load(config_path)
    except ValueError as e:
        raise click.UsageError(str(e)) from e

    if tick is not None:
        if tick <= 0:
            raise click.BadParameter("must be positive", param_hint="--tick")
        config.refresh.tick = tick

    if pid is None:
        handle = ProcessHandle.myself()
    else:
        try:
            handle = ProcessHandle.from_pid(pid)
        except SnapshotError as e:
            raise click.BadParameter(f"no process with pid {pid}", param_hint="PID") from e

    log.configure(
        log_file or config.log_path,
        level=config.log.level,
        max_bytes=config.log.max_bytes,
        backup_count=config.log.backup_count,
    )
    ProcscopeApp(handle=handle, config=config).run()
