# pkitree/__init__.py

"""
PKI Tree - Certificate Hierarchy Manager
========================================

This module provides tools for issuing root, intermediate and leaf certificates
into a single trust hierarchy, with passphrase protected private keys and an
encrypted SQLite record store.
"""

# ---- Package metadata ----
__version__ = "0.4.0"
__title__ = "PKI Tree Certificate Hierarchy Manager"
__short_title__ = "PKITREE"
__author__ = "Alex Ferrara <alex@wiredsquare.com>"
__license__ = "MIT"


# ---- Public exports ----
__all__ = [
    "__version__",
    "__title__",
    "__short_title__",
    "__author__",
    "__license__",
]
