# pkitree/models/settings.py

from __future__ import annotations

import logging
import os
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, SecretStr

from pkitree.constants import (
    DEFAULT_DATABASE,
    DEFAULT_DATABASE_PASSWORD,
    DEFAULT_DATABASE_SALT,
    ENV_DATABASE,
    ENV_DATABASE_PASSWORD,
    ENV_DATABASE_SALT,
    ENV_INTERMEDIATE_CA_PASSWORD,
    ENV_ROOT_CA_PASSWORD,
)
from pkitree.models.cert import Profile

log = logging.getLogger(__name__)


class Settings(BaseModel):
    """
    Runtime configuration. Environment variables provide the defaults,
    command line flags override them.
    """
    model_config = ConfigDict(frozen=True)

    database: str = DEFAULT_DATABASE
    database_password: SecretStr = SecretStr(DEFAULT_DATABASE_PASSWORD)
    database_salt: SecretStr = SecretStr(DEFAULT_DATABASE_SALT)
    root_ca_password: Optional[SecretStr] = None
    intermediate_ca_password: Optional[SecretStr] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> "Settings":
        env = os.environ if environ is None else environ

        values = {
            "database": env.get(ENV_DATABASE) or DEFAULT_DATABASE,
            "database_password": env.get(ENV_DATABASE_PASSWORD) or DEFAULT_DATABASE_PASSWORD,
            "database_salt": env.get(ENV_DATABASE_SALT) or DEFAULT_DATABASE_SALT,
            "root_ca_password": env.get(ENV_ROOT_CA_PASSWORD) or None,
            "intermediate_ca_password": env.get(ENV_INTERMEDIATE_CA_PASSWORD) or None,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})

        settings = cls.model_validate(values)

        if settings.database_password.get_secret_value() == DEFAULT_DATABASE_PASSWORD:
            log.warning("Using the default database password. Set %s.", ENV_DATABASE_PASSWORD)

        return settings

    def fallback_password(self, profile: Profile) -> Optional[str]:
        """ Return the configured passphrase for a CA profile, if any """
        if profile is Profile.ROOT_CA and self.root_ca_password is not None:
            return self.root_ca_password.get_secret_value()
        if profile is Profile.INTERMEDIATE_CA and self.intermediate_ca_password is not None:
            return self.intermediate_ca_password.get_secret_value()
        return None
