# pkitree/commands/cert/actions.py

from __future__ import annotations

import logging
import sys
from typing import List, Optional

from pkitree.commands.helpers import prune_opts
from pkitree.constants import (
    EXIT_OK,
    EXIT_VALIDATION_ERROR,
    COLOUR_BRIGHT,
    COLOUR_RESET,
)
from pkitree.models.app import App
from pkitree.models.cert import Certificate, IssueRequest, Profile
from pkitree.reports.cert_list import cert_list
from pkitree.services.errors import IssuanceValidationError
from pkitree.utils.cli_ui import get_confirmed_password, get_password
from pkitree.utils.files import parse_names_file, write_bytes
from pkitree.utils.formatting import error, print_result, title, warning

log = logging.getLogger(__name__)


def _print_issued(cert: Certificate) -> None:
    parent = f" signed by [ {COLOUR_BRIGHT}{cert.parent_id}{COLOUR_RESET} ]" if cert.parent_id else ""
    print(f"Certificate id [ {COLOUR_BRIGHT}{cert.id}{COLOUR_RESET} ] {cert.profile.value} {cert.name}{parent}")

def handle_cert_create(app: App) -> int:
    title("Create x509 Certificate", level=2)

    passphrase: Optional[str] = None
    parent_passphrase: Optional[str] = None

    if app.args.ask_pass:
        passphrase = get_confirmed_password("private key passphrase")
    if app.args.ask_parent_pass:
        parent_passphrase = get_password("parent CA passphrase")

    base = prune_opts(
        IssueRequest,
        app.args,
        passphrase=passphrase,
        parent_ca_password=parent_passphrase,
    )

    if not getattr(app.args, "file", None):
        # Single name mode, validation errors go to the caller
        title(f'Issuing {base.profile} certificate for {COLOUR_BRIGHT}{base.name}{COLOUR_RESET}', 9)
        try:
            cert = app.issuer.issue(base)
        except Exception:
            print_result(False)
            raise
        print_result(True)
        _print_issued(cert)
        return EXIT_OK

    # Bulk mode
    if base.profile != Profile.LEAF.value:
        error("Bulk issuance only creates leaf certificates.", EXIT_VALIDATION_ERROR)

    rejected: List[str] = []

    for name in parse_names_file(app.args.file):
        request = IssueRequest.model_validate({**base.model_dump(), "name": name})

        title(f'Issuing leaf certificate for {COLOUR_BRIGHT}{name}{COLOUR_RESET}', 9)
        try:
            cert = app.issuer.issue(request)
        except IssuanceValidationError as e:
            print_result(False)
            error(f"{name}: {e}", 0)
            rejected.append(name)
            continue

        print_result(True)
        _print_issued(cert)

    if rejected:
        log.info("Rejected %d of the bulk names", len(rejected))
        return EXIT_VALIDATION_ERROR

    return EXIT_OK

def handle_cert_list(app: App) -> int:
    if app.args.ca_only:
        return cert_list(app.issuer.list_parent_candidates(), report_title="Certificate Authorities")

    return cert_list(app.issuer.list_all(), report_title="Certificates")

def handle_cert_info(app: App) -> int:
    cert = app.issuer.get(app.args.cert_id)

    print(f'Certificate Database Entry: [ {COLOUR_BRIGHT}{cert.id}{COLOUR_RESET} ] {cert.name}')

    if app.args.short:
        print(app.issuer.short_inspection(cert.id))
    else:
        print(cert.inspection)

    if cert.is_ca:
        children = app.issuer.children(cert.id)
        print()
        title(f"Signed certificates: {len(children)}", 3)
        for child in children:
            print(f"  [ {COLOUR_BRIGHT}{child.id}{COLOUR_RESET} ] {child.profile.value} {child.name}")

    return EXIT_OK

def handle_cert_download(app: App) -> int:
    title("Download x509 Certificate", level=2)

    filename, data = app.issuer.download(app.args.cert_id, app.args.kind)

    if app.args.kind == "key" and b"ENCRYPTED PRIVATE KEY" not in data:
        warning(f"The private key of certificate {app.args.cert_id} is not passphrase protected.")

    if app.args.to_stdout:
        sys.stdout.write(data.decode("utf-8"))
        return EXIT_OK

    out_path = app.args.outfile or filename
    mode = 0o600 if app.args.kind == "key" else 0o644

    title(f"Writing {app.args.kind} to [ {COLOUR_BRIGHT}{out_path}{COLOUR_RESET} ]", 9)
    written = write_bytes(out_path, data, overwrite=False, create_dirs=False, atomic=True, mode=mode)
    print_result(bool(written))

    return EXIT_OK
