# pkitree/services/cert.py

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, Optional, Union

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa

from pkitree.constants import RSA_KEY_SIZE, RSA_PUBLIC_EXPONENT
from pkitree.models.cert import KeyType, Profile
from pkitree.services.errors import ParentDecryptionFailedError, SigningFailedError
from pkitree.utils.datetime import add_years

log = logging.getLogger(__name__)

PrivateKey = Union[rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey, ed25519.Ed25519PrivateKey]
PublicKey = Union[rsa.RSAPublicKey, ec.EllipticCurvePublicKey, ed25519.Ed25519PublicKey]

_CRYPTO_ERRORS = (ValueError, TypeError, UnsupportedAlgorithm)


def generate_private_key(key_type: KeyType) -> PrivateKey:
    """
    Generate a fresh private key for a key type.

    EC uses NIST P-256, OKP uses Ed25519, RSA uses a RSA_KEY_SIZE modulus.

    Raises:
        SigningFailedError: the backend could not generate the key
    """
    try:
        if key_type is KeyType.EC:
            return ec.generate_private_key(ec.SECP256R1())
        if key_type is KeyType.OKP:
            return ed25519.Ed25519PrivateKey.generate()
        if key_type is KeyType.RSA:
            return rsa.generate_private_key(
                public_exponent=RSA_PUBLIC_EXPONENT,
                key_size=RSA_KEY_SIZE,
            )
    except _CRYPTO_ERRORS as exc:
        raise SigningFailedError(f"Unable to generate a {key_type.value} key.") from exc

    raise SigningFailedError(f"Unsupported key type: {key_type!r}")

def key_type_of(key: Union[PrivateKey, PublicKey]) -> KeyType:
    """ Map a cryptography key object back to its KeyType """
    if isinstance(key, (rsa.RSAPrivateKey, rsa.RSAPublicKey)):
        return KeyType.RSA
    if isinstance(key, (ec.EllipticCurvePrivateKey, ec.EllipticCurvePublicKey)):
        return KeyType.EC
    if isinstance(key, (ed25519.Ed25519PrivateKey, ed25519.Ed25519PublicKey)):
        return KeyType.OKP
    raise SigningFailedError(f"Unsupported key: {type(key).__name__}")

def key_matches_certificate(key: PrivateKey, certificate: x509.Certificate) -> bool:
    """ True when the private key is the one the certificate was issued to """
    spki = (serialization.Encoding.DER, serialization.PublicFormat.SubjectPublicKeyInfo)
    return key.public_key().public_bytes(*spki) == certificate.public_key().public_bytes(*spki)

def signature_hash(key: PrivateKey) -> Optional[hashes.HashAlgorithm]:
    """ Ed25519 signs the message itself, everything else signs a SHA-256 digest """
    if isinstance(key, ed25519.Ed25519PrivateKey):
        return None
    return hashes.SHA256()

def serialize_private_key(key: PrivateKey, passphrase: Optional[str] = None) -> str:
    """
    Returns the private key as a PKCS#8 PEM string, encrypted when a passphrase is given.
    """
    encryption: serialization.KeySerializationEncryption = (
        serialization.BestAvailableEncryption(passphrase.encode("utf-8"))
        if passphrase else serialization.NoEncryption()
    )
    try:
        return key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=encryption,
        ).decode("utf-8")
    except _CRYPTO_ERRORS as exc:
        raise SigningFailedError("Unable to serialize the private key.") from exc

@contextmanager
def unlocked_private_key(pem: str, passphrase: Optional[str] = None) -> Iterator[PrivateKey]:
    """
    Decrypt a stored private key for the duration of a `with` block.

    The passphrase buffer is overwritten and the key reference dropped when the
    block exits, whether it exits normally or by an exception.

    Raises:
        ParentDecryptionFailedError: wrong or missing passphrase, or unreadable key
    """
    secret = bytearray(passphrase.encode("utf-8")) if passphrase else None
    key: Optional[PrivateKey] = None

    try:
        try:
            key = serialization.load_pem_private_key(
                pem.encode("utf-8"),
                password=bytes(secret) if secret is not None else None,
            )
        except _CRYPTO_ERRORS as exc:
            raise ParentDecryptionFailedError("Unable to decrypt the parent CA private key.") from exc

        yield key

    finally:
        if secret is not None:
            secret[:] = bytes(len(secret))
        key = None

def build_subject(name: str) -> x509.Name:
    return x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, name)])

def build_certificate(
    *,
    profile: Profile,
    name: str,
    public_key: PublicKey,
    issuer: x509.Name,
    signing_key: PrivateKey,
    not_before: datetime,
    years: int,
) -> x509.Certificate:
    """
    Build and sign a certificate for a profile.

    Args:
        profile: Decides basic constraints, key usage and SAN
        name: Subject common name
        public_key: The public half of the freshly generated key
        issuer: The issuer name, the subject itself when self-signed
        signing_key: The new key when self-signed, the parent's key otherwise
        not_before: Start of the validity window
        years: Length of the validity window in calendar years

    Raises:
        SigningFailedError: building or signing the certificate failed
    """
    try:
        subject = build_subject(name)

        builder = (
            x509.CertificateBuilder()
            .subject_name(subject)
            .issuer_name(issuer)
            .public_key(public_key)
            .serial_number(x509.random_serial_number())
            .not_valid_before(not_before)
            .not_valid_after(add_years(not_before, years))
            .add_extension(x509.SubjectKeyIdentifier.from_public_key(public_key), critical=False)
            .add_extension(
                x509.AuthorityKeyIdentifier.from_issuer_public_key(signing_key.public_key()),
                critical=False,
            )
        )

        if profile.is_ca:
            builder = builder.add_extension(
                x509.BasicConstraints(ca=True, path_length=None), critical=True)

            builder = builder.add_extension(
                x509.KeyUsage(
                    digital_signature=False,
                    key_encipherment=False,
                    key_agreement=False,
                    data_encipherment=False,
                    key_cert_sign=True,
                    crl_sign=True,
                    content_commitment=False,
                    encipher_only=False,
                    decipher_only=False
                ), critical=True,
            )
        else:
            builder = builder.add_extension(
                x509.BasicConstraints(ca=False, path_length=None), critical=False)

            builder = builder.add_extension(
                x509.KeyUsage(
                    digital_signature=True,
                    key_encipherment=isinstance(public_key, rsa.RSAPublicKey),
                    key_agreement=False,
                    data_encipherment=False,
                    key_cert_sign=False,
                    crl_sign=False,
                    content_commitment=False,
                    encipher_only=False,
                    decipher_only=False
                ), critical=True,
            )
            builder = builder.add_extension(
                x509.ExtendedKeyUsage([
                    ExtendedKeyUsageOID.SERVER_AUTH,
                    ExtendedKeyUsageOID.CLIENT_AUTH,
                ]), critical=False,
            )
            # DNSName only carries A-labels
            if name.isascii():
                builder = builder.add_extension(
                    x509.SubjectAlternativeName([x509.DNSName(name)]), critical=False)

        return builder.sign(private_key=signing_key, algorithm=signature_hash(signing_key))

    except _CRYPTO_ERRORS as exc:
        log.error("Signing %s certificate %r failed: %s", profile.value, name, exc)
        raise SigningFailedError(f"Unable to sign the {profile.value} certificate {name!r}.") from exc
