"""Command-line interface.

Reads documentation sources, resolves the tests they declare and prints
the resolution as JSON.
"""

import logging
import sys
from asyncio import run
from json import dumps
from pathlib import Path
from typing import TYPE_CHECKING

from click import ClickException, argument, echo, group, option
from click import Path as PathParam
from pydantic import ValidationError

from docprobe.core import DocumentReader, FileDescriptionLoader, SpecResolver
from docprobe.errors import DocprobeError
from docprobe.schema import Config

if TYPE_CHECKING:
    from docprobe.schema.config import LogLevel

#: Logging levels by configuration name. `silent` disables logging.
LOG_LEVELS = {
    'silent': logging.CRITICAL + 1,
    'error': logging.ERROR,
    'warning': logging.WARNING,
    'info': logging.INFO,
    'debug': logging.DEBUG,
}

InputFilepath = PathParam(
    exists=True,
    dir_okay=False,
    readable=True,
    path_type=Path,
)


def setup_logging(level: 'LogLevel') -> None:
    """Configure the root logger to write to standard error.

    Statement warnings are routed through logging as well.
    """
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter('%(levelname)s %(name)s: %(message)s'))

    root_logger.addHandler(handler)
    root_logger.setLevel(LOG_LEVELS[level])

    logging.captureWarnings(True)


def load_config(path: Path | None, **overrides: object) -> Config:
    """Load the configuration from a file or the environment.

    Raises:
        ClickException: If the configuration is invalid.
    """
    try:
        if path is not None:
            return Config.from_file(path, **overrides)
        return Config(**overrides)
    except (DocprobeError, ValidationError, ValueError) as error:
        raise ClickException(f'Invalid configuration: {error}') from error


@group(help='Detect and resolve tests declared in documentation sources.')
def cli() -> None:
    """Root CLI group for docprobe tools."""
    return None


@cli.command(
    name='detect',
    help='Print the resolved tests of FILES as JSON to standard output.',
)
@option(
    '-c', '--config',
    'config_path',
    type=InputFilepath,
    help='Configuration file (JSON or YAML).',
)
@option(
    '--detect-steps/--no-detect-steps',
    default=None,
    help='Enable or disable step detection from prose.',
)
@option(
    '--strict',
    is_flag=True,
    default=False,
    help='Fail on invalid statements instead of skipping them.',
)
@argument(
    'files',
    nargs=-1,
    required=True,
    type=InputFilepath,
)
def detect(files: tuple[Path, ...], config_path: Path | None,
           detect_steps: bool | None, strict: bool) -> None:
    """Read, resolve and print tests.

    Args:
        files: Documentation sources.
        config_path: Configuration file.
        detect_steps: Step detection override.
        strict: Strict statement handling override.
    """
    overrides: dict[str, object] = {}
    if detect_steps is not None:
        overrides['detect_steps'] = detect_steps
    if strict:
        overrides['strict'] = True

    config = load_config(config_path, **overrides)
    setup_logging(config.log_level)

    base_path = config_path.parent if config_path else None

    try:
        specs = DocumentReader(config).read_all(files)
        resolution = run(SpecResolver(
            config,
            loader=FileDescriptionLoader(base_path),
        ).resolve(specs))
    except DocprobeError as error:
        raise ClickException(str(error)) from error

    echo(resolution.model_dump_json(by_alias=True, exclude_none=True, indent=2))


@cli.command(
    name='schema',
    help='Print the configuration JSON Schema to standard output.',
)
def print_schema() -> None:
    """Generate and print the configuration JSON Schema."""
    schema = Config.model_json_schema(by_alias=True, mode='serialization')

    echo(dumps(schema, ensure_ascii=False, indent=2))


if __name__ == '__main__':
    cli()
