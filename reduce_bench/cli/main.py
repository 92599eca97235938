"""
reduce_bench CLI main dispatcher.

Provides subcommands:
- reducebench run [COUNT]
- reducebench list
- reducebench targets
- reducebench sysspec [show|export]
"""

import sys
import argparse
import logging
from typing import List, Optional


def main(argv: Optional[List[str]] = None):
    """
    Main entry point for reducebench CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])
    """
    parser = argparse.ArgumentParser(
        prog='reducebench',
        description='Throughput and accuracy of float32 summation across CPU and GPU backends',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable debug logging'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    from .run_cmd import add_run_parser, add_list_parser, add_targets_parser
    add_run_parser(subparsers)
    add_list_parser(subparsers)
    add_targets_parser(subparsers)

    from .sysspec_cmd import add_sysspec_parser
    add_sysspec_parser(subparsers)

    args = parser.parse_args(argv)

    from ..logging import configure_global_logging
    configure_global_logging(logging.DEBUG if args.verbose else logging.INFO)

    if args.command == 'run':
        from .run_cmd import handle_run
        return handle_run(args)
    elif args.command == 'list':
        from .run_cmd import handle_list
        return handle_list(args)
    elif args.command == 'targets':
        from .run_cmd import handle_targets
        return handle_targets(args)
    elif args.command == 'sysspec':
        from .sysspec_cmd import handle_sysspec
        return handle_sysspec(args)
    else:
        parser.print_help()
        return 1


if __name__ == '__main__':
    sys.exit(main())
