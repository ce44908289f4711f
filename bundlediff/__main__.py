import argparse
import logging
import sys

from . import config
from . import delta
from . import makediff
from . import pack
from . import platforms
from .errors import AlgorithmUnavailableError, BundleDiffError, UsageError

# command -> (delta algorithm, layout of <origin>)
DIFF_COMMANDS = {
    'diff': ('bsdiff', platforms.PPK),
    'hdiff': ('hdiff', platforms.PPK),
    'hdiff-from-ppk': ('hdiff', platforms.PPK),
    'diff-from-apk': ('bsdiff', platforms.APK),
    'hdiff-from-apk': ('hdiff', platforms.APK),
    'hdiff-from-app': ('hdiff', platforms.HARMONY_APP),
    'diff-from-ipa': ('bsdiff', platforms.IPA),
    'hdiff-from-ipa': ('hdiff', platforms.IPA),
}


def build_parser():
    parser = argparse.ArgumentParser(prog='bundlediff', description="Create incremental update packages for app bundles.")
    parser.add_argument('-v', '--verbose', action='store_true', help="log every decision")
    sub = parser.add_subparsers(dest='command', metavar='command', required=True)
    for name, (algorithm, layout) in DIFF_COMMANDS.items():
        p = sub.add_parser(name, help=f"diff a {layout.name} against a new ppk using {algorithm}")
        p.add_argument('origin', nargs='?', default='', help=f"the old {layout.name}")
        p.add_argument('next', nargs='?', default='', help="the new ppk")
        p.add_argument('-o', '--output', default=config.DEFAULT_DIFF_OUTPUT, help="output path, ${time} is replaced by a timestamp (default: %(default)s)")
    p = sub.add_parser('pack', help="zip a bundle directory into a ppk")
    p.add_argument('directory')
    p.add_argument('-o', '--output', default=config.DEFAULT_PACK_OUTPUT, help="(default: %(default)s)")
    return parser


def run_diff(command: str, args) -> str:
    if not args.origin or not args.next:
        raise UsageError(f"Usage: bundlediff {command} <origin> <next>")
    algorithm_name, layout = DIFF_COMMANDS[command]
    algorithm = delta.get_algorithm(algorithm_name)
    output = config.expand_template(args.output)
    result = makediff.make_diff(args.origin, args.next, output, layout, algorithm)
    return result.output


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format='%(levelname)s %(name)s: %(message)s')

    try:
        if args.command == 'pack':
            output = config.expand_template(args.output)
            pack.pack_directory(args.directory, output)
            print(f"ppk package saved to: {output}")
        else:
            output = run_diff(args.command, args)
            print(f"{output} generated.")
    except AlgorithmUnavailableError as e:
        print(e, file=sys.stderr)
        return 1
    except UsageError as e:
        print(e, file=sys.stderr)
        parser.print_usage(sys.stderr)
        return 1
    except (BundleDiffError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
