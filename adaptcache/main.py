#!/usr/bin/env python3
"""
adaptcache - Main Entry Point
Sets up logging before handing over to the CLI
"""

import sys
import logging

from .cache_core.constants import DEFAULT_LOG_FORMAT, DEFAULT_LOG_LEVEL


def setup_logging(argv=None):
    """Configure logging from the verbosity flags on the command line"""
    argv = sys.argv if argv is None else argv
    verbose = '--verbose' in argv or '-V' in argv
    quiet = '--quiet' in argv or '-q' in argv
    silent = '--silent' in argv or '-N' in argv

    if silent:
        log_level = logging.ERROR
    elif quiet:
        log_level = logging.WARNING
    elif verbose:
        log_level = logging.DEBUG
    else:
        log_level = getattr(logging, DEFAULT_LOG_LEVEL)  # Default: minimal output without -V

    logging.basicConfig(
        level=log_level,
        format=DEFAULT_LOG_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stderr)
        ]
    )
    return log_level


def main():
    """Main entry point"""
    setup_logging()

    from .cache_cli.cli import cli_main
    return cli_main()


if __name__ == "__main__":
    sys.exit(main())
