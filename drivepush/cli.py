"""
CLI entry point for drivepush.
Wires a remote client factory into the push engine.
"""
import importlib
import logging
import os
import signal
import sys
from pathlib import Path
from typing import Callable, List, Optional, Tuple

import click

from .config import LOG_FILE
from .models import Mount, MountPoint
from .push import Differ, PushEngine, PushOptions, attach_mount_points
from .remote import DriveError, PushCancelled, RemoteClient
from .tasks import CancellationToken

logger = logging.getLogger(__name__)

ClientFactory = Callable[[Path], Tuple[RemoteClient, Differ]]


def setup_logging(log_level: str, log_file: Path = LOG_FILE) -> None:
    """Configure logging with the specified level."""
    log_file.parent.mkdir(parents=True, exist_ok=True)
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler(sys.stdout)
        ]
    )
    logger.debug(f"Logging initialized at level {log_level}")


def load_client_factory(spec: str) -> ClientFactory:
    """
    Import a client factory given as 'package.module:factory'.

    The factory is called with the sync root and returns
    (remote_client, differ).
    """
    module_name, _, attr = spec.partition(":")
    if not module_name or not attr:
        raise click.BadParameter(f"expected MODULE:FACTORY, got {spec!r}", param_hint="--client")

    try:
        module = importlib.import_module(module_name)
        return getattr(module, attr)
    except (ImportError, AttributeError) as e:
        raise click.BadParameter(f"cannot load {spec!r}: {e}", param_hint="--client") from e


def parse_mounts(values: Tuple[str, ...]) -> Optional[Mount]:
    """Parse NAME=PATH mount options."""
    points: List[MountPoint] = []
    for value in values:
        name, sep, mount_path = value.partition("=")
        if not sep or not name or not mount_path:
            raise click.BadParameter(f"expected NAME=PATH, got {value!r}", param_hint="--mount")
        points.append(MountPoint(name, mount_path))
    return Mount(points) if points else None


@click.command()
@click.argument("root", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.argument("sources", nargs=-1)
@click.option("--client", "client_spec", required=True, metavar="MODULE:FACTORY",
              help="Factory returning (remote_client, differ) for ROOT.")
@click.option("--no-prompt", is_flag=True, help="Push without confirming the change list.")
@click.option("--no-clobber", is_flag=True, help="Never overwrite existing remote files.")
@click.option("--ignore-checksum", is_flag=True, help="Compare by metadata only.")
@click.option("--mount", "mounts", multiple=True, metavar="NAME=PATH",
              help="Attach an external path under ROOT for this push.")
@click.option("--log-level", default="INFO", show_default=True,
              type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False))
@click.option("--log-file", type=click.Path(dir_okay=False, path_type=Path), default=LOG_FILE,
              show_default=True)
def main(root, sources, client_spec, no_prompt, no_clobber, ignore_checksum, mounts,
         log_level, log_file):
    """Push local changes under ROOT (or the given SOURCES) to the remote."""
    setup_logging(log_level, log_file)

    factory = load_client_factory(client_spec)
    mount = parse_mounts(mounts)
    remote, differ = factory(root)

    options = PushOptions(
        no_prompt=no_prompt,
        no_clobber=no_clobber,
        ignore_checksum=ignore_checksum,
        mount=mount,
        show_progress=True,
    )
    engine = PushEngine(remote, root, differ, options=options)
    token = CancellationToken()

    def on_interrupt(signum, frame):
        token.cancel()
        raise PushCancelled("push interrupted")

    previous_handler = signal.signal(signal.SIGINT, on_interrupt)
    try:
        if mount is not None:
            attach_mount_points(engine.root, mount)

        result = engine.push(list(sources) or ["/"], token)

        if result.aborted:
            click.echo(f"Push aborted: {result.reason}")
        elif result.failed:
            click.echo(f"Push completed with {len(result.failed)} failure(s):")
            for path in result.failed:
                click.echo(f"  {path}")
            sys.exit(1)

    except PushCancelled:
        signal.signal(signal.SIGINT, previous_handler)
        engine.clear_mount_points()
        click.echo("\nPush interrupted", err=True)
        # Worker threads may be stuck in remote calls; do not join them at exit.
        logging.shutdown()
        sys.stdout.flush()
        sys.stderr.flush()
        os._exit(1)

    except (DriveError, OSError) as e:
        logger.exception("Error during push")
        click.echo(f"Error: {str(e)}", err=True)
        sys.exit(1)

    finally:
        signal.signal(signal.SIGINT, previous_handler)
        engine.clear_mount_points()


if __name__ == "__main__":
    main()
