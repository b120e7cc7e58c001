# pkitree/utils/crypto.py

from __future__ import annotations

from typing import Union

from cryptography import x509

from pkitree.services.errors import SigningFailedError


def load_certificate_pem(pem: Union[str, bytes]) -> x509.Certificate:
    """
    Load a PEM-encoded certificate into a cryptography.x509.Certificate.

    Args:
        pem: Certificate bytes or UTF-8 string containing a PEM block.

    Raises:
        SigningFailedError: If the data is missing, not PEM, or cannot be parsed.
    """
    if not pem:
        raise SigningFailedError("No certificate data provided.")

    data = pem.encode("utf-8") if isinstance(pem, str) else pem
    data = data.strip()

    header = b"-----BEGIN CERTIFICATE-----"
    footer = b"-----END CERTIFICATE-----"
    if header not in data or footer not in data:
        raise SigningFailedError("Certificate must be PEM with BEGIN/END CERTIFICATE markers.")

    try:
        return x509.load_pem_x509_certificate(data)
    except ValueError as exc:
        raise SigningFailedError("Failed to parse PEM certificate.") from exc
