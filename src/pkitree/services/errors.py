# pkitree/services/errors.py

class PKIError(Exception):
    """Base class for certificate hierarchy errors."""


class IssuanceValidationError(PKIError):
    """Raised when an issuance request is structurally illegal. Nothing has been generated yet."""


class InvalidProfileError(IssuanceValidationError):
    """Raised when the requested profile is not one of the known profiles."""


class MissingParentError(IssuanceValidationError):
    """Raised when a leaf or intermediate CA request names no parent CA."""


class UnexpectedParentError(IssuanceValidationError):
    """Raised when a root CA or self-signed request names a parent CA."""


class InvalidParentError(IssuanceValidationError):
    """Raised when the named parent does not exist or cannot sign certificates."""


class ParentDecryptionFailedError(IssuanceValidationError):
    """Raised when the parent CA private key cannot be decrypted with the given passphrase."""


class InvalidValiditySpanError(IssuanceValidationError):
    """Raised when the validity span in years is out of range."""


class InvalidKeyTypeError(IssuanceValidationError):
    """Raised when the requested key type is not one of the known key types."""


class InvalidNameError(IssuanceValidationError):
    """Raised when the subject name is empty or too long for a commonName."""


class SigningFailedError(PKIError):
    """Raised when key generation, certificate building or signing fails."""


class CertificateNotFoundError(PKIError):
    """Raised when a certificate id does not resolve to a stored record."""


class PersistenceFailedError(PKIError):
    """Raised when the certificate store cannot be read or written."""


class KeyWithheldError(PKIError):
    """Raised when the private key of a CA certificate is requested for download."""


class RecoveryError(PKIError):
    """Raised when a recovery file cannot be imported."""
