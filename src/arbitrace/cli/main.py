#!/usr/bin/env python3
"""
Main entry point for arbitrace

This module serves as the CLI entry point, handling argument parsing
and routing to the command implementations in the cli/ module.
"""

import sys
import argparse

from .report import report_command


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='arbitrace - transaction trace reports for EVM chains')
    parser.add_argument('--version', '-v', action='version', version='%(prog)s 0.1.0')

    subparsers = parser.add_subparsers(dest='command', help='Commands')
    subparsers.required = True

    # report command
    report_parser = subparsers.add_parser('report', help='Build the annotated trace report of a transaction')
    report_parser.add_argument('tx_hash', help='Transaction hash to report on')
    report_parser.add_argument('--rpc', '-r', default=None, help='RPC URL of a node exposing debug_traceTransaction')
    report_parser.add_argument('--explorer-api-url', default=None, help='Etherscan-compatible API used for contract names')
    report_parser.add_argument('--explorer-api-key', default=None, help='API key for the explorer API')
    report_parser.add_argument('--cache-dir', default=None, help='Directory of the persisted lookup cache')
    report_parser.add_argument('--concurrent-traces', action='store_true', default=None, help='Request the three raw traces at once')
    report_parser.add_argument('--json', action='store_true', help='Output the report as JSON')
    report_parser.add_argument('--quiet', '-q', action='store_true', help='Suppress progress and log output')
    report_parser.add_argument('--debug', action='store_true', help='Enable debug logging')
    report_parser.add_argument('--verbose', action='store_true', help='Enable trace-level logging')
    report_parser.add_argument('--log-file', default=None, help='Also write logs to this file')
    return parser


def main(argv=None):
    """Main entry point for arbitrace CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == 'report':
        return report_command(args)

    return 0


if __name__ == '__main__':
    sys.exit(main())
