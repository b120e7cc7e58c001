# pkitree/commands/database/register.py

from __future__ import annotations

import argparse

from .actions import (
    handle_database_export,
    handle_database_recover,
)
from pkitree.constants import EXIT_OK
from pkitree.models.app import App


def _add_export_subcommand(actions: argparse._SubParsersAction) -> argparse.ArgumentParser:
    """
    Register `database export`
    """

    parser = actions.add_parser('export',
        help='Export the entire certificate SQLite database')

    parser.set_defaults(handler=handle_database_export)

    return parser

def _add_recover_subcommand(actions: argparse._SubParsersAction) -> argparse.ArgumentParser:
    """
    Register `database recover`
    """

    parser = actions.add_parser('recover',
        help='Import certificate records from a JSON recovery file')
    parser.add_argument('-f', '--file',
        required=True,
        help='JSON file holding a list of certificate records')

    parser.set_defaults(handler=handle_database_recover)

    return parser

def register(subparsers: argparse._SubParsersAction) -> None:
    """
    Register the `database` command and its actions.
    """
    parser = subparsers.add_parser(
        'database',
        add_help=True,
        help='Perform Database actions',
    )

    actions = parser.add_subparsers(
        title='Actions',
        dest='action',
    )

    _add_export_subcommand(actions)
    _add_recover_subcommand(actions)

    parser.set_defaults(handler=_show_help, _parser=parser)

def _show_help(app: App):
    app.args._parser.print_help()
    return EXIT_OK
