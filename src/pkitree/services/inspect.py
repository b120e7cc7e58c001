# pkitree/services/inspect.py

from __future__ import annotations

from typing import List, Optional

from cryptography import x509
from cryptography.x509.oid import ExtendedKeyUsageOID, SignatureAlgorithmOID
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa

from pkitree.models.cert import Profile
from pkitree.utils.datetime import format_datetime

INDENT = "    "

_SIGNATURE_NAMES = {
    SignatureAlgorithmOID.ECDSA_WITH_SHA256: "ECDSA-SHA256",
    SignatureAlgorithmOID.ECDSA_WITH_SHA384: "ECDSA-SHA384",
    SignatureAlgorithmOID.RSA_WITH_SHA256: "SHA256-RSA",
    SignatureAlgorithmOID.RSA_WITH_SHA384: "SHA384-RSA",
    SignatureAlgorithmOID.ED25519: "Ed25519",
}

_EKU_NAMES = {
    ExtendedKeyUsageOID.SERVER_AUTH: "Server Authentication",
    ExtendedKeyUsageOID.CLIENT_AUTH: "Client Authentication",
}

_SHORT_LABELS = {
    Profile.ROOT_CA: "Root CA Certificate",
    Profile.INTERMEDIATE_CA: "Intermediate CA Certificate",
    Profile.LEAF: "TLS Certificate",
    Profile.SELF_SIGNED: "Self-Signed Certificate",
}


def _hex_colon(data: bytes) -> str:
    return ":".join(f"{b:02X}" for b in data)

def _signature_name(certificate: x509.Certificate) -> str:
    oid = certificate.signature_algorithm_oid
    return _SIGNATURE_NAMES.get(oid, oid.dotted_string)

def describe_public_key(public_key) -> str:
    """ One line key description, e.g. 'ECDSA P-256', 'RSA 2048', 'Ed25519' """
    if isinstance(public_key, rsa.RSAPublicKey):
        return f"RSA {public_key.key_size}"
    if isinstance(public_key, ec.EllipticCurvePublicKey):
        curve = {"secp256r1": "P-256", "secp384r1": "P-384", "secp521r1": "P-521"}
        return f"ECDSA {curve.get(public_key.curve.name, public_key.curve.name)}"
    if isinstance(public_key, ed25519.Ed25519PublicKey):
        return "Ed25519"
    return type(public_key).__name__

def _public_key_lines(public_key) -> List[str]:
    pad = INDENT * 3
    if isinstance(public_key, rsa.RSAPublicKey):
        return [
            f"{pad}Public Key Algorithm: RSA",
            f"{pad}{INDENT}Public-Key: ({public_key.key_size} bit)",
            f"{pad}{INDENT}Exponent: {public_key.public_numbers().e}",
        ]
    if isinstance(public_key, ec.EllipticCurvePublicKey):
        return [
            f"{pad}Public Key Algorithm: ECDSA",
            f"{pad}{INDENT}Public-Key: ({public_key.curve.key_size} bit)",
            f"{pad}{INDENT}Curve: {describe_public_key(public_key).split(' ', 1)[1]}",
        ]
    if isinstance(public_key, ed25519.Ed25519PublicKey):
        return [
            f"{pad}Public Key Algorithm: Ed25519",
            f"{pad}{INDENT}Public-Key: (256 bit)",
        ]
    return [f"{pad}Public Key Algorithm: {type(public_key).__name__}"]

def _key_usage_names(usage: x509.KeyUsage) -> List[str]:
    names = []
    if usage.digital_signature:
        names.append("Digital Signature")
    if usage.key_encipherment:
        names.append("Key Encipherment")
    if usage.key_cert_sign:
        names.append("Certificate Sign")
    if usage.crl_sign:
        names.append("CRL Sign")
    return names

def _extension_lines(ext: x509.Extension) -> List[str]:
    value = ext.value
    critical = " critical" if ext.critical else ""
    head = INDENT * 3
    body = INDENT * 4

    if isinstance(value, x509.BasicConstraints):
        return [f"{head}X509v3 Basic Constraints:{critical}",
                f"{body}CA:{'TRUE' if value.ca else 'FALSE'}"]
    if isinstance(value, x509.KeyUsage):
        return [f"{head}X509v3 Key Usage:{critical}",
                f"{body}{', '.join(_key_usage_names(value))}"]
    if isinstance(value, x509.ExtendedKeyUsage):
        names = [_EKU_NAMES.get(oid, oid.dotted_string) for oid in value]
        return [f"{head}X509v3 Extended Key Usage:{critical}", f"{body}{', '.join(names)}"]
    if isinstance(value, x509.SubjectKeyIdentifier):
        return [f"{head}X509v3 Subject Key Identifier:", f"{body}{_hex_colon(value.digest)}"]
    if isinstance(value, x509.AuthorityKeyIdentifier):
        key_id = _hex_colon(value.key_identifier) if value.key_identifier else ""
        return [f"{head}X509v3 Authority Key Identifier:", f"{body}keyid:{key_id}"]
    if isinstance(value, x509.SubjectAlternativeName):
        names = [f"DNS:{name}" for name in value.get_values_for_type(x509.DNSName)]
        return [f"{head}X509v3 Subject Alternative Name:{critical}", f"{body}{', '.join(names)}"]

    return [f"{head}{ext.oid.dotted_string}:{critical}"]

def render_inspection(certificate: x509.Certificate) -> str:
    """
    Render the parsed fields of a certificate as human readable text.

    The layout follows the familiar `openssl x509 -text` output: version,
    serial, issuer, validity window, subject, public key and extensions.
    """
    lines = [
        "Certificate:",
        f"{INDENT}Data:",
        f"{INDENT * 2}Version: 3 (0x2)",
        f"{INDENT * 2}Serial Number: {certificate.serial_number} (0x{certificate.serial_number:x})",
        f"{INDENT * 2}Signature Algorithm: {_signature_name(certificate)}",
        f"{INDENT * 2}Issuer: {certificate.issuer.rfc4514_string()}",
        f"{INDENT * 2}Validity",
        f"{INDENT * 3}Not Before: {format_datetime(certificate.not_valid_before_utc, 'text')}",
        f"{INDENT * 3}Not After : {format_datetime(certificate.not_valid_after_utc, 'text')}",
        f"{INDENT * 2}Subject: {certificate.subject.rfc4514_string()}",
        f"{INDENT * 2}Subject Public Key Info:",
    ]
    lines.extend(_public_key_lines(certificate.public_key()))

    if len(certificate.extensions):
        lines.append(f"{INDENT * 2}X509v3 extensions:")
        for ext in certificate.extensions:
            lines.extend(_extension_lines(ext))

    lines.append(f"{INDENT}Signature Algorithm: {_signature_name(certificate)}")

    return "\n".join(lines) + "\n"

def render_short(certificate: x509.Certificate, profile: Optional[Profile] = None) -> str:
    """
    Render a four line summary of a certificate.
    """
    label = _SHORT_LABELS.get(profile, "Certificate") if profile else "Certificate"
    serial = str(certificate.serial_number)
    if len(serial) > 12:
        serial = f"{serial[:4]}...{serial[-4:]}"

    return (
        f"X.509v3 {label} ({describe_public_key(certificate.public_key())}) [Serial: {serial}]\n"
        f"  Subject:     {certificate.subject.rfc4514_string()}\n"
        f"  Issuer:      {certificate.issuer.rfc4514_string()}\n"
        f"  Valid from:  {format_datetime(certificate.not_valid_before_utc, 'text')}\n"
        f"          to:  {format_datetime(certificate.not_valid_after_utc, 'text')}\n"
    )
