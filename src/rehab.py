"""rehab - stale module requirement finder and upgrader.

    Returns:
        int: Exit code
"""
import logging
import sys
from typing import List, Optional

from args import parse_args
from cli_inputs import setup_logging
from common.logging_utils import extra_context, is_debug_enabled


def main(argv: Optional[List[str]] = None) -> int:
    """Main function of the program."""
    logger = logging.getLogger(__name__)
    args = parse_args(argv)
    setup_logging(args)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action=args.action)
        )

    if args.action == "propose":
        from cli_propose import run_propose  # pylint: disable=import-outside-toplevel
        return run_propose(args)
    from cli_show import run_show  # pylint: disable=import-outside-toplevel
    return run_show(args)


if __name__ == "__main__":
    sys.exit(main())
