"""Shared fixtures for pkitree unit tests."""

import pytest

from pkitree.models.cert import IssueRequest
from pkitree.models.settings import Settings
from pkitree.services.database import CertificateDB
from pkitree.services.issuer import CertificateIssuer
from pkitree.services.sealing import FieldSealer

ROOT_PASS = "root-secret"
INTERMEDIATE_PASS = "intermediate-secret"
TEST_KDF_ITERATIONS = 1_000


@pytest.fixture
def settings():
    """Settings for an in-memory store without fallback CA passphrases."""
    return Settings(
        database=":memory:",
        database_password="test-password",
        database_salt="test-salt",
    )


@pytest.fixture
def sealer(settings):
    return FieldSealer(
        password=settings.database_password.get_secret_value(),
        salt=settings.database_salt.get_secret_value(),
        iterations=TEST_KDF_ITERATIONS,
    )


@pytest.fixture
def db(sealer):
    database = CertificateDB(sealer)
    yield database
    database.close()


@pytest.fixture
def issuer(db, settings):
    return CertificateIssuer(db, settings)


@pytest.fixture
def chain(issuer):
    """A root CA, an intermediate CA signed by it and a leaf signed by the intermediate."""
    root = issuer.issue(IssueRequest(
        profile="root-ca", name="Test Root CA", years=10, passphrase=ROOT_PASS,
    ))
    intermediate = issuer.issue(IssueRequest(
        profile="intermediate-ca", name="Test Intermediate CA", years=5,
        passphrase=INTERMEDIATE_PASS,
        parent_ca_id=root.id, parent_ca_password=ROOT_PASS,
    ))
    leaf = issuer.issue(IssueRequest(
        profile="leaf", name="www.example.com", years=1,
        parent_ca_id=intermediate.id, parent_ca_password=INTERMEDIATE_PASS,
    ))
    return root, intermediate, leaf
