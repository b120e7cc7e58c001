# pkitree/models/app.py

import logging
from argparse import Namespace
from dataclasses import dataclass

from pkitree.constants import SEALING_KDF_ITERATIONS
from pkitree.models.settings import Settings
from pkitree.services.database import CertificateDB
from pkitree.services.issuer import CertificateIssuer
from pkitree.services.sealing import FieldSealer

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class App:
    """
    Lightweight application context passed to all handlers.
    Holds long-lived service singletons and shared runtime config.
    """
    args: Namespace
    settings: Settings
    db: CertificateDB
    issuer: CertificateIssuer

    @classmethod
    def from_args(cls, args: Namespace) -> "App":
        settings = Settings.from_env(database=getattr(args, "database", None))

        sealer = FieldSealer(
            password=settings.database_password.get_secret_value(),
            salt=settings.database_salt.get_secret_value(),
            iterations=SEALING_KDF_ITERATIONS,
        )

        log.debug("Opening certificate database %s", settings.database)
        db = CertificateDB(sealer, filename=settings.database)

        return cls(args=args, settings=settings, db=db, issuer=CertificateIssuer(db, settings))

    def close(self) -> None:
        self.db.close()
