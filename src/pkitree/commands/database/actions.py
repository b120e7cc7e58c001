# pkitree/commands/database/actions.py

from __future__ import annotations

import json
import logging

from pkitree.constants import (
    EXIT_OK,
    COLOUR_BRIGHT,
    COLOUR_RESET,
)
from pkitree.models.app import App
from pkitree.services.errors import RecoveryError
from pkitree.utils.files import read_bytes
from pkitree.utils.formatting import print_result, title

log = logging.getLogger(__name__)


def handle_database_export(app: App) -> int:
    title("Database export", level=2)

    print(app.db.export_sql().decode('utf-8'))

    return EXIT_OK

def handle_database_recover(app: App) -> int:
    title("Database recover", level=2)

    try:
        records = json.loads(read_bytes(app.args.file).decode('utf-8'))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise RecoveryError(f"Unable to read recovery file {app.args.file}: {e}") from e

    if not isinstance(records, list):
        raise RecoveryError("A recovery file must hold a JSON list of certificate records.")

    title(f'Importing {len(records)} records from [ {COLOUR_BRIGHT}{app.args.file}{COLOUR_RESET} ]', 9)
    try:
        count = app.issuer.recover(records)
    except RecoveryError:
        print_result(False)
        raise

    print_result(True)
    title(f"Recovered {count} certificates, the database now holds {app.db.count()}.", 7)

    return EXIT_OK
