"""CLI entry point."""

import os
import sys

from common.logging_config import setup_logging
from pkgcli.commands import dispatch_command
from pkgcli.parser import ParseError, parse_tokens


def main() -> None:
    """
    Entry point for CLI.

    With arguments, runs one command and exits; without, starts the REPL.
    """
    args = sys.argv[1:]
    log_level = 'DEBUG' if '--debug' in args else os.getenv('LOG_LEVEL', 'WARNING')
    args = [arg for arg in args if arg != '--debug']

    logger = setup_logging('pkgcli', log_level=log_level)

    if args:
        try:
            cmd_obj = parse_tokens(args)
        except ParseError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(2)
        print(dispatch_command(cmd_obj))
        return

    from pkgcli.repl import repl_loop

    logger.info("CLI starting...")
    try:
        repl_loop()
    except Exception as e:
        logger.error(f"CLI error: {e}", exc_info=True)
        raise
    finally:
        logger.info("CLI exiting")


if __name__ == "__main__":
    main()
