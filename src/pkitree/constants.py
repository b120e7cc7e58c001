# pkitree/constants.py

from __future__ import annotations

"""
Standardised exit codes for pkitree CLI commands.

0 = success
1 = validation errors (the request was rejected before any key was generated)
2 = fatal errors (signing, storage, IO problems, unhandled exceptions)
"""
EXIT_OK: int = 0
EXIT_VALIDATION_ERROR: int = 1
EXIT_FATAL: int = 2

# ---- ANSI Colour Codes ----
COLOUR = {
    'red': '\033[31m',
    'green': '\033[32m',
    'yellow': '\033[33m',
    'blue': '\033[34m',
    'cyan': '\033[36m',
    'white': '\033[37m',
    'bold_red': '\033[1;31m',
    'bold_green': '\033[1;32m',
    'bold_yellow': '\033[1;33m',
    'bold_white': '\033[1;37m',
    'underline_white': '\033[4;37m',
    'bright_white': '\033[97m',
    'reset': '\033[0m'
}

# Convenience shortcuts
COLOUR_ERROR = COLOUR['bold_red']
COLOUR_OK = COLOUR['green']
COLOUR_BRIGHT = COLOUR['bold_white']
COLOUR_WARNING = COLOUR['bold_yellow']
COLOUR_RESET = COLOUR['reset']

# Row colours per profile for the certificate list
PROFILE_COLOUR = {
    'root-ca': COLOUR['red'],
    'intermediate-ca': COLOUR['yellow'],
    'leaf': COLOUR['green'],
    'self-signed': COLOUR['blue'],
}

# ---- Cryptographic defaults ----
RSA_KEY_SIZE: int = 2048
RSA_PUBLIC_EXPONENT: int = 65537

# ---- Issuance limits ----
MIN_VALIDITY_YEARS: int = 1
MAX_VALIDITY_YEARS: int = 20
DEFAULT_VALIDITY_YEARS: int = 1
MAX_NAME_LENGTH: int = 64

# ---- Storage defaults ----
DEFAULT_DATABASE = 'pkitree.sqlite'
DEFAULT_DATABASE_PASSWORD = '123456'
DEFAULT_DATABASE_SALT = 'pkitree keeps its records salted'

# At-rest sealing: PBKDF2-HMAC-SHA256 work factor (OWASP 2023) and Fernet key size
SEALING_KDF_ITERATIONS: int = 480_000
SEALING_KEY_LENGTH: int = 32

ENV_DATABASE = 'PKITREE_DATABASE'
ENV_DATABASE_PASSWORD = 'PKITREE_DATABASE_PASSWORD'
ENV_DATABASE_SALT = 'PKITREE_DATABASE_SALT'
ENV_ROOT_CA_PASSWORD = 'PKITREE_ROOT_CA_PASSWORD'
ENV_INTERMEDIATE_CA_PASSWORD = 'PKITREE_INTERMEDIATE_CA_PASSWORD'

# ---- Download boundary ----
DOWNLOAD_KINDS = ('crt', 'key', 'chain')

# ---- View defaults ----
STATUS_COLUMN = 90
