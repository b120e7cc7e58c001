# pkitree/commands/__init__.py

from __future__ import annotations

import argparse

from . import cert, database

def register_all(subparsers: argparse._SubParsersAction) -> None:
    """
    Register all subcommands here
    """
    cert.register(subparsers)
    database.register(subparsers)
