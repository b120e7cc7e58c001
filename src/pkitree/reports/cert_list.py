# pkitree/reports/cert_list.py

from __future__ import annotations

import logging
from typing import Iterable

from pkitree.constants import (
    EXIT_OK,
    COLOUR,
    COLOUR_RESET,
    PROFILE_COLOUR,
)
from pkitree.models.cert import Certificate
from pkitree.utils.datetime import format_datetime
from pkitree.utils.formatting import title

log = logging.getLogger(__name__)


def cert_list(certs: Iterable[Certificate], *, report_title: str) -> int:
    """
    Render the certificate hierarchy as a table, one row per record.
    No dependency on `App`.
    """
    title(report_title, level=2)

    headers = ["id", "profile", "name", "key", "parent", "created"]
    row_format = "{:<6} {:<16} {:<40} {:<5} {:<7} {:<20}"

    print(row_format.format(*headers))
    print("-" * 100)

    count = 0
    for cert in certs:
        if len(cert.name) <= 40:
            name = cert.name
        else:
            name = cert.name[:37] + "..."

        created = format_datetime(cert.created_at, "compact") if cert.created_at else ""

        colour = PROFILE_COLOUR.get(cert.profile.value, COLOUR["white"])

        print(
            colour + row_format.format(
                cert.id,
                cert.profile.value,
                name,
                cert.key_type.value,
                cert.parent_id if cert.parent_id is not None else "-",
                created,
            )
            + COLOUR_RESET
        )
        count += 1

    log.debug("Listed %d certificates", count)

    return EXIT_OK
