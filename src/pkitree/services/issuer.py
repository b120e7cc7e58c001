# pkitree/services/issuer.py

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import replace
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from cryptography import x509
from cryptography.hazmat.primitives import serialization

from pkitree.constants import DOWNLOAD_KINDS
from pkitree.models.cert import Certificate, IssueRequest, Profile
from pkitree.models.settings import Settings
from pkitree.services.cert import (
    build_certificate,
    build_subject,
    generate_private_key,
    key_matches_certificate,
    key_type_of,
    serialize_private_key,
    unlocked_private_key,
)
from pkitree.services.database import CertificateDB
from pkitree.services.errors import (
    IssuanceValidationError,
    KeyWithheldError,
    PersistenceFailedError,
    PKIError,
    RecoveryError,
    SigningFailedError,
)
from pkitree.services.inspect import render_inspection, render_short
from pkitree.services.validator import HierarchyValidator, ValidationResult
from pkitree.utils.crypto import load_certificate_pem
from pkitree.utils.datetime import now_utc

log = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = ("/", "\\", "\x00")


def download_basename(cert: Certificate) -> str:
    """
    Returns a file name for a certificate that stays inside the current directory.

    Path separators and NUL become underscores. A name that is empty or made
    only of dots after that falls back to 'certificate-<id>'.
    """
    name = cert.name
    for char in _UNSAFE_FILENAME_CHARS:
        name = name.replace(char, "_")

    if name.strip(".") == "":
        return f"certificate-{cert.id}"

    return name

def _is_encrypted_pem(pem: str) -> bool:
    return "ENCRYPTED PRIVATE KEY" in pem or "Proc-Type: 4,ENCRYPTED" in pem


class ParentLocks:
    """
    One lock per parent CA id. Issuance under the same parent is serialised
    for the decrypt-and-sign sequence, different parents run in parallel.
    """
    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[int, threading.Lock] = {}

    @contextmanager
    def hold(self, parent_id: Optional[int]) -> Iterator[None]:
        if parent_id is None:
            yield
            return

        with self._guard:
            lock = self._locks.setdefault(parent_id, threading.Lock())

        with lock:
            yield


class CertificateIssuer:
    """ Issues certificates into the hierarchy and serves the stored records """
    def __init__(self, db: CertificateDB, settings: Optional[Settings] = None):
        """
        Args:
            db (CertificateDB): Listing, retrieval and persistence of records
            settings (Settings): Optional fallback CA passphrases
        """
        self.db = db
        self.settings = settings
        self.validator = HierarchyValidator(db, settings)
        self.parent_locks = ParentLocks()

    # ----------------
    # Issuance
    # ----------------
    def issue(self, request: IssueRequest) -> Certificate:
        """
        Validate, generate, sign and store a new certificate.

        Nothing is stored unless every step succeeds.

        Returns:
            Certificate: The stored record, with the private key withheld for CA profiles

        Raises:
            IssuanceValidationError: the request is structurally illegal
            SigningFailedError: key generation or signing failed
            PersistenceFailedError: the record could not be stored
        """
        log.info("Issuing %s", request)

        try:
            result = self.validator.validate(request)
        except IssuanceValidationError as e:
            log.info("Rejected %s: %s", request, e)
            raise

        passphrase = request.passphrase
        if passphrase is None and self.settings is not None and result.profile.is_ca:
            passphrase = self.settings.fallback_password(result.profile)

        certificate, key_pem = self._sign(result, passphrase)

        record = Certificate(
            profile=result.profile,
            name=result.name,
            key_type=result.key_type,
            crt=certificate.public_bytes(serialization.Encoding.PEM).decode("utf-8"),
            key=key_pem,
            inspection=render_inspection(certificate),
            parent_id=result.parent.id if result.parent else None,
        )

        try:
            stored = self.db.create(record)
        except PersistenceFailedError:
            log.error("Unable to store %s certificate %r", result.profile.value, result.name)
            raise

        log.info("Issued %s certificate %r with id %s", stored.profile.value, stored.name, stored.id)

        return stored.public_view()

    def _sign(self, result: ValidationResult, passphrase: Optional[str]) -> Tuple[x509.Certificate, str]:
        now = now_utc()

        if result.parent is None:
            key = generate_private_key(result.key_type)
            certificate = build_certificate(
                profile=result.profile,
                name=result.name,
                public_key=key.public_key(),
                issuer=build_subject(result.name),
                signing_key=key,
                not_before=now,
                years=result.years,
            )
            return certificate, serialize_private_key(key, passphrase)

        parent = result.parent
        parent_certificate = load_certificate_pem(parent.crt)

        with self.parent_locks.hold(parent.id), \
                unlocked_private_key(parent.key, result.parent_passphrase) as signing_key:
            if not key_matches_certificate(signing_key, parent_certificate):
                log.error("Private key of parent %s does not match its certificate", parent.id)
                raise SigningFailedError(
                    f"The private key of parent CA {parent.id} does not match its certificate.")

            key = generate_private_key(result.key_type)
            certificate = build_certificate(
                profile=result.profile,
                name=result.name,
                public_key=key.public_key(),
                issuer=parent_certificate.subject,
                signing_key=signing_key,
                not_before=now,
                years=result.years,
            )

        return certificate, serialize_private_key(key, passphrase)

    # ----------------
    # Read methods
    # ----------------
    def get(self, cert_id: int) -> Certificate:
        """
        Returns a stored certificate, with the private key withheld for CA profiles
        """
        return self.db.get_by_id(cert_id).public_view()

    def list_all(self) -> List[Certificate]:
        return [cert.public_view() for cert in self.db.list_all()]

    def list_parent_candidates(self) -> List[Certificate]:
        """
        Returns the certificates that may sign others. Selection is by profile
        only, never by the content of the name.
        """
        return [cert for cert in self.list_all() if cert.is_ca]

    def children(self, cert_id: int) -> List[Certificate]:
        """ Returns the certificates a CA signed directly """
        return [cert.public_view() for cert in self.db.list_children(cert_id)]

    def chain(self, cert_id: int) -> List[Certificate]:
        """
        Returns the certificate followed by every ancestor up to its root.
        """
        chain: List[Certificate] = []
        seen = set()
        current: Optional[int] = cert_id

        while current is not None:
            if current in seen:
                raise PersistenceFailedError(f"Certificate {cert_id} has a cyclic parent chain.")
            seen.add(current)

            cert = self.db.get_by_id(current).public_view()
            chain.append(cert)
            current = cert.parent_id

        return chain

    def short_inspection(self, cert_id: int) -> str:
        cert = self.db.get_by_id(cert_id)
        return render_short(load_certificate_pem(cert.crt), cert.profile)

    def download(self, cert_id: int, kind: str) -> Tuple[str, bytes]:
        """
        Returns an attachment for a certificate.

        Args:
            cert_id: The certificate id
            kind: 'crt', 'key' or 'chain'

        Returns:
            tuple: (filename, content)

        Raises:
            KeyWithheldError: a CA private key was requested
            CertificateNotFoundError: unknown id
            ValueError: unknown kind
        """
        if kind not in DOWNLOAD_KINDS:
            raise ValueError(f"Invalid download type: {kind!r}")

        cert = self.db.get_by_id(cert_id)

        if kind == "crt":
            data = cert.crt
        elif kind == "key":
            if cert.is_ca:
                raise KeyWithheldError(f"The private key of {cert.profile.value} {cert.id} is not downloadable.")
            data = cert.key or ""
        else:
            data = "".join(link.crt for link in self.chain(cert_id))

        suffix = "pem" if kind == "chain" else kind

        return f"{download_basename(cert)}.{suffix}", data.encode("utf-8")

    # ----------------
    # Recovery
    # ----------------
    def recover(self, items: Sequence[Dict[str, Any]]) -> int:
        """
        Import plain certificate records, keeping their ids.

        Every record is checked against the hierarchy before anything is
        written: parents must appear earlier (in the file or the store), be CA
        profiles and be the issuer of the child. An unencrypted private key must
        belong to its certificate.

        Returns:
            int: Number of imported records

        Raises:
            RecoveryError: a record is malformed or breaks the hierarchy
        """
        subjects: Dict[int, Tuple[Profile, x509.Name]] = {}
        for cert in self.db.list_all():
            subjects[cert.id] = (cert.profile, load_certificate_pem(cert.crt).subject)

        records: List[Certificate] = []

        for index, item in enumerate(items):
            try:
                cert = Certificate.from_dict(item)
                parsed = load_certificate_pem(cert.crt)
            except (AttributeError, KeyError, ValueError, TypeError, PKIError) as e:
                raise RecoveryError(f"Record {index} is malformed: {e}") from e

            if cert.id is not None and cert.id in subjects:
                raise RecoveryError(f"Record {index}: certificate id {cert.id} already exists.")

            if key_type_of(parsed.public_key()) is not cert.key_type:
                raise RecoveryError(f"Record {index}: key type does not match the certificate.")

            if cert.key and not _is_encrypted_pem(cert.key):
                try:
                    with unlocked_private_key(cert.key) as key:
                        matches = key_matches_certificate(key, parsed)
                except PKIError as e:
                    raise RecoveryError(f"Record {index}: unreadable private key: {e}") from e
                if not matches:
                    raise RecoveryError(f"Record {index}: private key does not match the certificate.")

            if cert.profile.requires_parent:
                if cert.parent_id not in subjects:
                    raise RecoveryError(f"Record {index}: parent {cert.parent_id} is not an earlier record.")

                parent_profile, parent_subject = subjects[cert.parent_id]

                if not parent_profile.is_ca:
                    raise RecoveryError(f"Record {index}: parent {cert.parent_id} is not a CA.")
                if parsed.issuer != parent_subject:
                    raise RecoveryError(f"Record {index}: issuer does not match parent {cert.parent_id}.")

            elif cert.parent_id is not None:
                raise RecoveryError(f"Record {index}: a {cert.profile.value} cannot have a parent.")

            if not cert.inspection:
                cert = replace(cert, inspection=render_inspection(parsed))

            if cert.id is not None:
                subjects[cert.id] = (cert.profile, parsed.subject)

            records.append(cert)

        count = self.db.import_records(records)
        log.info("Recovered %d certificate records", count)

        return count
