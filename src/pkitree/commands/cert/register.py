# pkitree/commands/cert/register.py

from __future__ import annotations

import argparse

from .actions import (
    handle_cert_create,
    handle_cert_download,
    handle_cert_info,
    handle_cert_list,
)
from pkitree.constants import DEFAULT_VALIDITY_YEARS, DOWNLOAD_KINDS, EXIT_OK
from pkitree.models.app import App
from pkitree.models.cert import KeyType, Profile


def _add_create_subcommand(actions: argparse._SubParsersAction) -> argparse.ArgumentParser:
    """
    Register `cert create`
    """

    parser = actions.add_parser("create",
        help="Issue a new certificate into the hierarchy")
    subparser_group_create_cert = parser.add_mutually_exclusive_group(
        required=True)
    subparser_group_create_cert.add_argument("-n", "--name",
        default="",
        help="Subject common name")
    subparser_group_create_cert.add_argument("-f", "--file",
        help="Bulk name file. One leaf certificate per line.")
    parser.add_argument("-p", "--profile",
        required=True,
        help="Certificate profile", choices=[p.value for p in Profile])
    parser.add_argument("-y", "--years",
        type=int,
        default=DEFAULT_VALIDITY_YEARS,
        help="Validity in years")
    parser.add_argument("-k", "--key-type",
        default=KeyType.EC.value,
        help="Key type", choices=[k.value for k in KeyType])
    parser.add_argument("--parent",
        dest="parent_ca_id",
        type=int,
        required=False,
        help="Id of the signing CA. Required for intermediate-ca and leaf.")
    parser.add_argument("--pass",
        dest="ask_pass",
        action="store_true",
        help="Ask for a passphrase to encrypt the new private key")
    parser.add_argument("--parent-pass",
        dest="ask_parent_pass",
        action="store_true",
        help="Ask for the passphrase of the parent CA private key")

    parser.set_defaults(handler=handle_cert_create)

    return parser

def _add_list_subcommand(actions: argparse._SubParsersAction) -> argparse.ArgumentParser:
    """
    Register `cert list`
    """
    parser = actions.add_parser("list",
        help="List the certificates in the hierarchy")
    parser.add_argument("--ca-only",
        action="store_true",
        help="Only list certificates that can sign others")

    parser.set_defaults(handler=handle_cert_list)

    return parser

def _add_info_subcommand(actions: argparse._SubParsersAction) -> argparse.ArgumentParser:
    """
    Register `cert info`
    """
    parser = actions.add_parser('info',
        help='Show the inspection of a certificate')
    parser.add_argument('-i', '--id',
        dest='cert_id',
        type=int,
        required=True,
        help='Certificate id')
    parser.add_argument('--short',
        action='store_true',
        help='Only show a short summary')

    parser.set_defaults(handler=handle_cert_info)

    return parser

def _add_download_subcommand(actions: argparse._SubParsersAction) -> argparse.ArgumentParser:
    """
    Register `cert download`
    """
    parser = actions.add_parser('download',
        help='Download a certificate, private key or chain')
    parser.add_argument('-i', '--id',
        dest='cert_id',
        type=int,
        required=True,
        help='Certificate id')
    parser.add_argument('-t', '--type',
        dest='kind',
        required=True,
        choices=list(DOWNLOAD_KINDS),
        help='What to download')
    out_group = parser.add_mutually_exclusive_group()
    out_group.add_argument('-o', '--outfile',
        metavar='FILE',
        help='Write to this file (default: <name>.<type>)')
    out_group.add_argument('--to-stdout',
        action='store_true',
        help='Write PEM to stdout')

    parser.set_defaults(handler=handle_cert_download)

    return parser

def register(subparsers: argparse._SubParsersAction) -> None:
    """
    Register the `cert` command and its actions.
    """
    parser = subparsers.add_parser(
        'cert',
        add_help=True,
        help='Perform Certificate actions',
    )

    actions = parser.add_subparsers(
        title='Actions',
        dest='action',
    )

    _add_create_subcommand(actions)
    _add_list_subcommand(actions)
    _add_info_subcommand(actions)
    _add_download_subcommand(actions)

    parser.set_defaults(handler=_show_help, _parser=parser)

def _show_help(app: App):
    app.args._parser.print_help()
    return EXIT_OK
