#!/usr/bin/env python3

import argparse
import argcomplete
import sys

from typing import List, Optional

from . import __version__
from .ai import ProviderError, create_provider
from .config import ConfigError, load_config
from .log import get_logger, setup_logging
from .session import Session

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    return argparse.ArgumentParser(
        prog="aiterm",
        description=(
            "An AI-powered terminal. Describe what you want in plain English, "
            "review the generated script and run it. Inside the session, type "
            "'exit' to quit, 'clear' to forget the conversation, 'config' to "
            "edit settings and '$<command>' to run a shell command directly."
        ),
        epilog=f"aiterm {__version__}",
    )


def run_cli(argv: Optional[List[str]] = None):
    """
    Parses the (empty) command line, loads the configuration, connects to the
    configured provider and runs the interactive session.

    Args:
        argv: A list of strings representing the command-line arguments.
              If None, `sys.argv[1:]` is used automatically by `parse_args`.
    """
    parser = build_parser()

    # Enable argument auto-completion.
    argcomplete.autocomplete(parser)
    parser.parse_args(argv)

    setup_logging()

    try:
        config = load_config()
    except ConfigError as e:
        print(f"Failed to load configuration: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        provider = create_provider(config)
    except ProviderError as e:
        print(f"Failed to initialize AI client: {e}", file=sys.stderr)
        sys.exit(1)

    logger.info("Session started with %s (%s)", config.provider, config.model)
    try:
        Session(provider).run()
    finally:
        provider.close()


def main():
    """The main entry point for the command-line interface, called by the `aiterm` script."""
    run_cli()


if __name__ == "__main__":
    main()
