# pkitree/services/validator.py

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol

from pkitree.constants import MAX_NAME_LENGTH, MAX_VALIDITY_YEARS, MIN_VALIDITY_YEARS
from pkitree.models.cert import Certificate, IssueRequest, KeyType, Profile
from pkitree.models.settings import Settings
from pkitree.services.cert import unlocked_private_key
from pkitree.services.errors import (
    CertificateNotFoundError,
    InvalidKeyTypeError,
    InvalidNameError,
    InvalidParentError,
    InvalidProfileError,
    InvalidValiditySpanError,
    MissingParentError,
    ParentDecryptionFailedError,
    UnexpectedParentError,
)

log = logging.getLogger(__name__)


class CertificateLookup(Protocol):
    def get_by_id(self, cert_id: int) -> Certificate: ...


@dataclass(frozen=True)
class ValidationResult:
    """ A request that passed every hierarchy rule, with its values resolved """
    profile: Profile
    key_type: KeyType
    name: str
    years: int
    parent: Optional[Certificate] = None
    parent_passphrase: Optional[str] = field(default=None, repr=False)


class HierarchyValidator:
    """
    Decides whether an issuance request is structurally legal.

    Only reads the referenced parent; never generates or stores anything.
    Rules run in a fixed order and the first failing rule raises.
    """
    def __init__(self, lookup: CertificateLookup, settings: Optional[Settings] = None):
        self.lookup = lookup
        self.settings = settings

    def validate(self, request: IssueRequest) -> ValidationResult:
        """
        Raises:
            IssuanceValidationError: one of its subclasses, naming the first broken rule
        """
        profile = self._check_profile(request.profile)
        parent = self._check_parent(profile, request.parent_ca_id)
        passphrase = self._check_parent_passphrase(parent, request.parent_ca_password)
        self._check_years(request.years)
        key_type = self._check_key_type(request.key_type)
        self._check_name(request.name)

        return ValidationResult(
            profile=profile,
            key_type=key_type,
            name=request.name,
            years=request.years,
            parent=parent,
            parent_passphrase=passphrase,
        )

    # ----------------
    # Rules
    # ----------------
    @staticmethod
    def _check_profile(value: str) -> Profile:
        try:
            return Profile(value)
        except ValueError:
            raise InvalidProfileError(f"Invalid certificate profile: {value!r}") from None

    def _check_parent(self, profile: Profile, parent_id: Optional[int]) -> Optional[Certificate]:
        if not profile.requires_parent:
            if parent_id is not None:
                raise UnexpectedParentError(f"A {profile.value} certificate cannot have a parent CA.")
            return None

        if parent_id is None:
            raise MissingParentError(f"A parent CA is required for a {profile.value} certificate.")

        try:
            parent = self.lookup.get_by_id(parent_id)
        except CertificateNotFoundError as e:
            raise InvalidParentError(f"Parent CA {parent_id} does not exist.") from e

        if not parent.is_ca:
            raise InvalidParentError(
                f"Certificate {parent_id} is a {parent.profile.value} and cannot sign certificates."
            )

        if not parent.key:
            raise InvalidParentError(f"Parent CA {parent_id} has no private key.")

        return parent

    def _check_parent_passphrase(self, parent: Optional[Certificate],
                                 passphrase: Optional[str]) -> Optional[str]:
        if parent is None or not parent.key_encrypted:
            return None

        if passphrase is None and self.settings is not None:
            passphrase = self.settings.fallback_password(parent.profile)

        if passphrase is None:
            raise ParentDecryptionFailedError(f"Parent CA {parent.id} requires a passphrase.")

        with unlocked_private_key(parent.key, passphrase):
            pass

        return passphrase

    @staticmethod
    def _check_years(years: int) -> None:
        if not MIN_VALIDITY_YEARS <= years <= MAX_VALIDITY_YEARS:
            raise InvalidValiditySpanError(
                f"Validity must be between {MIN_VALIDITY_YEARS} and {MAX_VALIDITY_YEARS} years, got {years}."
            )

    @staticmethod
    def _check_key_type(value: str) -> KeyType:
        try:
            return KeyType(value)
        except ValueError:
            raise InvalidKeyTypeError(f"Invalid key type: {value!r}") from None

    @staticmethod
    def _check_name(name: str) -> None:
        if not name or not name.strip():
            raise InvalidNameError("A subject name is required.")
        if len(name) > MAX_NAME_LENGTH:
            raise InvalidNameError(f"Subject name is longer than {MAX_NAME_LENGTH} characters.")
