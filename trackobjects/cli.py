#!/usr/bin/env python3
"""
TrackObjects CLI Interface

Run a Python program with object tracking armed from the first line, or
check a tracking configuration without running anything.
"""

import argparse
import importlib
import json
import os
import runpy
import sys

from . import __version__
from .config import ConfigurationError, TrackerConfig
from .core import get_tracker


def create_parser():
    """Create the argument parser for TrackObjects CLI."""
    parser = argparse.ArgumentParser(
        prog='trackobjects',
        description='TrackObjects - report objects that are still alive (probably leaking)',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  trackobjects run -c '/^myapp\\.net\\./' server.py --port 8080
  trackobjects run -c myapp.models.User --verbose -m myapp.worker
  trackobjects run -p myapp.debug:is_interesting --no-end server.py
  trackobjects check -c '/^myapp\\./' --verbose --json
        """
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    # Tracking options shared by all commands
    tracking = argparse.ArgumentParser(add_help=False)
    tracking.add_argument('--condition', '-c', dest='conditions', action='append',
                          default=[], metavar='COND',
                          help='Class/module name or /regex/ to track (repeatable)')
    tracking.add_argument('--predicate', '-p', dest='predicates', action='append',
                          default=[], metavar='MODULE:FUNC',
                          help='Callable deciding on a name (repeatable)')
    tracking.add_argument('--verbose', action='store_true',
                          help='Detailed report (one line per object)')
    tracking.add_argument('--no-end', action='store_true',
                          help='No report at exit')
    tracking.add_argument('--debug', action='store_true',
                          help='Trace every registered object')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Run command
    run_parser = subparsers.add_parser('run', parents=[tracking],
                                       help='Run a script or module with tracking armed')
    run_parser.add_argument('--module', '-m', type=str,
                            help='Run library module as a script')
    run_parser.add_argument('target', nargs='?',
                            help='Script to run')
    run_parser.add_argument('args', nargs=argparse.REMAINDER,
                            help='Arguments passed to the script')

    # Check command
    check_parser = subparsers.add_parser('check', parents=[tracking],
                                         help='Validate a tracking configuration')
    check_parser.add_argument('--json', action='store_true',
                              help='Output in JSON format')

    return parser


def resolve_predicate(reference):
    """Import ``module:function`` and return the callable."""
    module_name, sep, attr_path = reference.partition(':')
    if not sep or not module_name or not attr_path:
        raise ConfigurationError(f"predicate must look like module:function, got {reference!r}")
    try:
        target = importlib.import_module(module_name)
        for attr in attr_path.split('.'):
            target = getattr(target, attr)
    except (ImportError, AttributeError) as e:
        raise ConfigurationError(f"cannot resolve predicate {reference!r}: {e}") from e
    if not callable(target):
        raise ConfigurationError(f"predicate {reference!r} is not callable")
    return target


def build_config(args):
    """Environment settings overlaid with the command line options."""
    tokens = list(args.conditions)
    tokens.extend(resolve_predicate(ref) for ref in args.predicates)
    if args.verbose:
        tokens.append('-verbose')
    if args.no_end:
        tokens.append('-noend')
    if args.debug:
        tokens.append('-debug')
    return TrackerConfig.from_tokens(tokens, base=TrackerConfig.from_env())


def format_config_text(config):
    """Format a configuration for text output."""
    lines = []
    lines.append(f"Conditions: {len(config.conditions)}")
    for condition in config.conditions:
        lines.append(f"   {condition.kind:<10} {condition.describe()}")
    if not config.conditions:
        lines.append("   (none - construction hook would not be installed)")
    options = ' '.join(config.options()) or '(none)'
    lines.append(f"Options: {options}")
    return "\n".join(lines)


def cmd_run(args):
    """Handle run command."""
    if not args.module and not args.target:
        print("Nothing to run: give a script or -m MODULE", file=sys.stderr)
        return 2

    try:
        config = build_config(args)
    except ConfigurationError as e:
        print(f"Invalid tracking configuration: {e}", file=sys.stderr)
        return 1

    # Arm before the target's classes are created
    get_tracker().configure(*config.conditions, *config.options())

    if args.module:
        script_args = ([args.target] if args.target else []) + args.args
        sys.argv = [args.module] + script_args
    else:
        sys.argv = [args.target] + args.args
        sys.path.insert(0, os.path.dirname(os.path.abspath(args.target)))

    try:
        if args.module:
            runpy.run_module(args.module, run_name='__main__', alter_sys=True)
        else:
            runpy.run_path(args.target, run_name='__main__')
    except SystemExit as e:
        if e.code is None:
            return 0
        if isinstance(e.code, int):
            return e.code
        print(e.code, file=sys.stderr)
        return 1

    return 0


def cmd_check(args):
    """Handle check command."""
    try:
        config = build_config(args)
    except ConfigurationError as e:
        print(f"Invalid tracking configuration: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps({
            'conditions': [
                {'kind': c.kind, 'value': c.describe()} for c in config.conditions
            ],
            'verbose': config.verbose,
            'no_end': config.no_end,
            'debug': config.debug,
        }, indent=2))
    else:
        print(format_config_text(config))

    return 0


def main(argv=None):
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    # Dispatch to command handlers
    handlers = {
        'run': cmd_run,
        'check': cmd_check,
    }

    handler = handlers.get(args.command)
    if handler:
        return handler(args)
    else:
        print(f"Unknown command: {args.command}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
