# pkitree/services/sealing.py

from __future__ import annotations

import base64
from typing import Dict, Optional

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from pkitree.constants import SEALING_KDF_ITERATIONS, SEALING_KEY_LENGTH
from pkitree.services.errors import PersistenceFailedError

SEALED_FIELDS = ("crt", "key")


class FieldSealer:
    """
    Seals certificate record columns at rest.

    The database password is stretched once with PBKDF2-HMAC-SHA256 over the
    configured salt. Every field label then gets its own Fernet key expanded
    from that master key with HKDF, so a sealed `key` value cannot be unsealed
    as a `crt` value.
    """
    def __init__(self, password: str, salt: str, iterations: int = SEALING_KDF_ITERATIONS):
        master = self._stretch(password, salt, iterations)
        self._fernets: Dict[str, Fernet] = {
            label: Fernet(self._expand(master, label)) for label in SEALED_FIELDS
        }

    @staticmethod
    def _stretch(password: str, salt: str, iterations: int) -> bytes:
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=SEALING_KEY_LENGTH,
            salt=salt.encode("utf-8"),
            iterations=iterations,
        )
        return kdf.derive(password.encode("utf-8"))

    @staticmethod
    def _expand(master: bytes, label: str) -> bytes:
        hkdf = HKDF(
            algorithm=hashes.SHA256(),
            length=SEALING_KEY_LENGTH,
            salt=None,
            info=f"pkitree column {label}".encode("utf-8"),
        )
        return base64.urlsafe_b64encode(hkdf.derive(master))

    def seal(self, label: str, plain: Optional[str]) -> Optional[str]:
        if plain is None:
            return None
        return self._fernets[label].encrypt(plain.encode("utf-8")).decode("ascii")

    def unseal(self, label: str, sealed: Optional[str]) -> Optional[str]:
        """
        Raises:
            PersistenceFailedError: the value was sealed with another password or salt
        """
        if sealed is None:
            return None
        try:
            return self._fernets[label].decrypt(sealed.encode("ascii")).decode("utf-8")
        except InvalidToken as exc:
            raise PersistenceFailedError(
                f"Unable to unseal the stored {label!r} field. Is the database password correct?"
            ) from exc
