"""
    Command-line entry point for satoffset.
    It parses arguments, configures logging, and runs the offset pipeline
    against JPL Horizons.
"""

import argparse
import asyncio
import logging
import os
import sys
from typing import List, Optional

import aiohttp

from ..data.horizons import HorizonsClient
from ..pipeline.engine import process_file, RunStats
from ..utils.io import detect_encoding
from ..exceptions import InputFileError, ConfigurationError
from ..config import (
    DEFAULT_LOG_FORMAT, VERBOSITY_LOG_LEVELS, HORIZONS_TIMEOUT_SECONDS
)
from .. import __version__

log = logging.getLogger(__name__)


def create_argument_parser():
    """Create command line argument parser with proper defaults from config."""
    parser = argparse.ArgumentParser(
        prog='satoffset',
        description='Add spacecraft offset (s) lines to 80-column MPC astrometry using JPL Horizons',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s astrometry.txt > with_offsets.txt
  %(prog)s astrometry.txt -v2 --output with_offsets.txt
        """
    )

    parser.add_argument('input_file',
                        help='File of 80-column MPC astrometry')

    parser.add_argument('-v', '--verbose',
                        nargs='?', type=int, const=1, default=0,
                        help='Verbosity level; -v alone means 1, -v2 also logs Horizons responses')

    parser.add_argument('--output', '-o',
                        help='Write the rewritten astrometry here instead of standard output')

    parser.add_argument('--timeout',
                        type=float,
                        default=HORIZONS_TIMEOUT_SECONDS,
                        help=f'Timeout in seconds for each Horizons request (default: {HORIZONS_TIMEOUT_SECONDS})')

    parser.add_argument('--version', action='version',
                        version=f'satoffset {__version__}')

    return parser


def configure_logging(verbosity: int) -> None:
    """Map the -v level onto a logging level."""
    level_name = VERBOSITY_LOG_LEVELS[min(max(verbosity, 0), max(VERBOSITY_LOG_LEVELS))]
    logging.basicConfig(level=getattr(logging, level_name), format=DEFAULT_LOG_FORMAT)


def _create_source(session: aiohttp.ClientSession, args: argparse.Namespace) -> HorizonsClient:
    """
    Factory function to create the ephemeris source from the parsed arguments.

    Raises:
        ConfigurationError: When the timeout is not a positive number of seconds
    """
    if not args.timeout > 0:
        raise ConfigurationError(f"--timeout must be positive, got {args.timeout}")
    return HorizonsClient(session, timeout=args.timeout)


def _check_output_path(input_file: str, output_file: str) -> None:
    """
    Refuse an output path that would overwrite the input while it is read.

    Raises:
        ConfigurationError: When both paths name the same file
    """
    if os.path.exists(output_file) and os.path.samefile(input_file, output_file):
        raise ConfigurationError(f"--output '{output_file}' is the input file")


async def main_async(args: argparse.Namespace) -> RunStats:
    """
    Run the offset pipeline for the parsed arguments.

    The input is checked and its encoding detected before the output file is
    opened, so a bad input never truncates an existing output. The rewritten
    stream is written to standard output or, in the input's encoding, to the
    requested file.
    """
    encoding = detect_encoding(args.input_file)
    if args.output:
        _check_output_path(args.input_file, args.output)

    async with aiohttp.ClientSession() as session:
        source = _create_source(session, args)
        if args.output:
            with open(args.output, 'w', encoding=encoding) as out:
                return await process_file(args.input_file, source, out, encoding=encoding)
        return await process_file(args.input_file, source, sys.stdout, encoding=encoding)


def main(args_list: Optional[List[str]] = None):
    """Main entry point for the satoffset CLI.

    Args:
        args_list: Optional list of command line arguments.
                  If None, will parse from sys.argv
    """
    parser = create_argument_parser()
    args = parser.parse_args(args_list)
    configure_logging(args.verbose)
    log.info(f"Verbose = {args.verbose}")

    try:
        stats = asyncio.run(main_async(args))
    except ConfigurationError as e:
        log.error(f"Configuration error: {e}")
        sys.exit(1)
    except InputFileError as e:
        log.error(f"Could not process '{args.input_file}': {e}")
        sys.exit(1)

    if stats.failures:
        for reason, site_codes in stats.failures.items():
            log.warning(f"{reason}: {', '.join(site_codes)}")


if __name__ == "__main__":
    main()
