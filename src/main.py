"""Command-line entry point for render-list."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import TYPE_CHECKING, NoReturn

from pydantic import ValidationError

from dispatch.facade import Dispatcher
from domain.errors import (
    ConfigurationError,
    StatusLookupError,
    StorageInitError,
    SubmissionTimeout,
)
from domain.profiles import build_settings, load_profile
from shared.constants import (
    EXIT_CONFIG_ERROR,
    EXIT_OK,
    EXIT_USAGE,
    HASH_PATH,
    LOG_FORMAT,
    MAX_LOAD_OLD,
    MAX_ZOOM,
    XMLCONFIG_DEFAULT,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from domain.models import DispatchSettings

logger = logging.getLogger(__name__)

USAGE = f"""Usage: render-list [OPTION] ...
  -a, --all            render all tiles in given zoom level range instead of reading from STDIN
  -e, --exists         re-render tiles only if already present
  -f, --force          render tiles even if they seem current
  -r, --recurse        recurse from min to max zoom at each tile
  -m, --map=MAP        render tiles in this map (defaults to '{XMLCONFIG_DEFAULT}')
  -l, --max-load=LOAD  sleep if load is this high (defaults to {MAX_LOAD_OLD})
  -s, --socket=SOCKET  render service address (HTTP base URL or unix socket path)
  -n, --num-threads=N  the number of parallel request threads (default 1)
  -t, --tile-dir       tile storage location (defaults to '{HASH_PATH}')
  -z, --min-zoom=ZOOM  filter input to only render tiles greater or equal to this zoom level (default is 0)
  -Z, --max-zoom=ZOOM  filter input to only render tiles less than or equal to this zoom level (default is {MAX_ZOOM})
  -p, --profile=NAME   load settings from a TOML profile (name or path); flags override it
      --submit-timeout=SECONDS  give up when a job cannot be queued within this time
  -v, --verbose        log every decision
If you are using --all, you can restrict the tile range by adding these options:
  -x, --min-x=X        minimum X tile coordinate
  -X, --max-x=X        maximum X tile coordinate
  -y, --min-y=Y        minimum Y tile coordinate
  -Y, --max-y=Y        maximum Y tile coordinate
Without --all, send a list of tiles to be rendered from STDIN in the format:
  X Y Z
e.g.
  0 0 1
  0 1 1
  1 0 1
  1 1 1
The above would cause all 4 tiles at zoom 1 to be rendered
"""

# argparse dest -> settings field
_FIELD_FOR_DEST = {
    'all': 'all_mode',
    'exists': 'only_existing',
    'force': 'force',
    'recurse': 'recurse',
    'map': 'map_name',
    'max_load': 'max_load',
    'socket': 'socket',
    'num_threads': 'num_threads',
    'tile_dir': 'tile_dir',
    'min_zoom': 'min_zoom',
    'max_zoom': 'max_zoom',
    'min_x': 'min_x',
    'max_x': 'max_x',
    'min_y': 'min_y',
    'max_y': 'max_y',
    'submit_timeout': 'submit_timeout',
    'verbose': 'verbose',
}


def setup_logging(verbose: bool = False) -> None:
    """Configure logging to stderr; stdout carries the run's own output."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )


class _ArgumentParser(argparse.ArgumentParser):
    """Parser that reports bad option values instead of exiting."""

    def error(self, message: str) -> NoReturn:
        raise ConfigurationError(message)


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(prog='render-list', add_help=False)
    # store_true with default None so unset flags do not override a profile
    for short, long in (('-a', '--all'), ('-e', '--exists'), ('-f', '--force'),
                        ('-r', '--recurse'), ('-v', '--verbose')):
        parser.add_argument(short, long, action='store_true', default=None)
    parser.add_argument('-h', '--help', action='store_true')
    parser.add_argument('-m', '--map')
    parser.add_argument('-l', '--max-load', type=float)
    parser.add_argument('-s', '--socket')
    parser.add_argument('-n', '--num-threads', type=int)
    parser.add_argument('-t', '--tile-dir')
    parser.add_argument('-z', '--min-zoom', type=int)
    parser.add_argument('-Z', '--max-zoom', type=int)
    parser.add_argument('-x', '--min-x', type=int)
    parser.add_argument('-X', '--max-x', type=int)
    parser.add_argument('-y', '--min-y', type=int)
    parser.add_argument('-Y', '--max-y', type=int)
    parser.add_argument('-p', '--profile')
    parser.add_argument('--submit-timeout', type=float)
    return parser


def settings_from_args(args: argparse.Namespace) -> DispatchSettings:
    """Merge CLI flags over the profile (if any) and validate."""
    overrides = {
        field: getattr(args, dest)
        for dest, field in _FIELD_FOR_DEST.items()
        if getattr(args, dest) is not None
    }
    if args.profile:
        try:
            return load_profile(args.profile, overrides)
        except FileNotFoundError as e:
            raise ConfigurationError(str(e)) from e
    return build_settings(overrides)


def _validation_messages(error: ValidationError) -> list[str]:
    return [err['msg'].removeprefix('Value error, ') for err in error.errors()]


def main(argv: list[str] | None = None, stdin: Iterable[str] | None = None) -> int:
    """Parse arguments, run the dispatcher and return the exit code."""
    parser = build_parser()
    try:
        args, unknown = parser.parse_known_args(argv)
    except ConfigurationError as e:
        sys.stderr.write(f'{e}\n')
        return EXIT_CONFIG_ERROR
    if args.help:
        sys.stderr.write(USAGE)
        return EXIT_USAGE
    for arg in unknown:
        sys.stderr.write(f'unhandled option {arg!r}\n')

    try:
        settings = settings_from_args(args)
    except ValidationError as e:
        for message in _validation_messages(e):
            sys.stderr.write(message + '\n')
        return EXIT_CONFIG_ERROR
    except ConfigurationError as e:
        sys.stderr.write(f'{e}\n')
        return EXIT_CONFIG_ERROR

    setup_logging(settings.verbose)
    dispatcher = Dispatcher(settings)
    try:
        dispatcher.run(sys.stdin if stdin is None else stdin)
    except NotImplementedError as e:
        sys.stderr.write(f'{e}\n')
        return EXIT_USAGE
    except StorageInitError as e:
        sys.stderr.write(f'Failed to initialise storage backend {settings.tile_dir}: {e}\n')
        return EXIT_CONFIG_ERROR
    except (StatusLookupError, SubmissionTimeout) as e:
        logger.error('Run aborted: %s', e)
        return EXIT_CONFIG_ERROR
    return EXIT_OK


if __name__ == '__main__':
    sys.exit(main())
