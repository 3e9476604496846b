import argparse
import asyncio
import logging
import sys

from .clipboard import ClipboardError, ClipboardManager, ClipboardType, get_provider


def setup_logging(debug=False):
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='Read and write the clipboard from a terminal')
    parser.add_argument('-v', '--verbose', action='store_true', help='enable debug logging')
    parser.add_argument('--version', action='store_true', help='show version and exit')
    parser.add_argument('--provider', metavar='NAME',
                        help='use this provider instead of detecting one (also TERMCLIP_PROVIDER)')
    parser.add_argument('--timeout', type=float, metavar='SECS',
                        help='give up on clipboard programs after SECS (also TERMCLIP_COMMAND_TIMEOUT)')
    subparsers = parser.add_subparsers(dest='mode', help='operation')

    get_parser = subparsers.add_parser('get', help='print clipboard contents')
    get_parser.add_argument('-p', '--primary', action='store_true', help='use the primary selection')

    set_parser = subparsers.add_parser('set', help='replace clipboard contents')
    set_parser.add_argument('-p', '--primary', action='store_true', help='use the primary selection')
    set_parser.add_argument('text', nargs='?', help='text to copy (default: read stdin)')

    subparsers.add_parser('name', help='print the detected provider')

    args = parser.parse_args(argv)
    if args.version:
        from . import __version__
        print(f"termclip version {__version__}")
        sys.exit(0)

    if not args.mode:
        parser.print_help()
        sys.exit(1)
    return args


async def run(args, manager):
    clipboard_type = ClipboardType.SELECTION if getattr(args, 'primary', False) else ClipboardType.CLIPBOARD
    if args.mode == 'get':
        sys.stdout.write(await manager.get_contents(clipboard_type))
        sys.stdout.flush()
    elif args.mode == 'set':
        text = args.text if args.text is not None else sys.stdin.read()
        await manager.set_contents(text, clipboard_type)
    else:
        print(manager.name)


def main(argv=None):
    args = parse_args(argv)
    setup_logging(args.verbose)

    manager = ClipboardManager(get_provider(forced=args.provider, command_timeout=args.timeout))
    try:
        asyncio.run(run(args, manager))
    except ClipboardError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
