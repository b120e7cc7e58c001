# pkitree/services/database.py

from __future__ import annotations

import io
import logging
import sqlite3
import threading
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pkitree.models.cert import Certificate, KeyType, Profile
from pkitree.services.errors import CertificateNotFoundError, PersistenceFailedError
from pkitree.services.sealing import FieldSealer
from pkitree.utils.datetime import format_datetime, now_utc, parse_datetime

log = logging.getLogger(__name__)


class CertificateDB:
    """
    SQLite store for issued certificates.

    The store is append only: records are created once and never updated or
    deleted. The `crt` and `key` columns are sealed with a FieldSealer before
    they touch the database, every other column is plain text so records can
    be listed without unsealing anything.

    Schema versions:
    - v1: certificate and config tables
    """

    _default_schema_version: int = 1

    _columns: Tuple[str, ...] = (
        "id",
        "profile",
        "name",
        "key_type",
        "crt",
        "key",
        "parent_id",
        "inspection",
        "created_at",
    )

    @property
    def default_schema_version(self) -> int:
        """ Return the schema version """
        return self._default_schema_version

    def __init__(self, sealer: FieldSealer, filename: str = ":memory:") -> None:
        """
        Open (or create) a certificate database.

        Args:
            sealer (FieldSealer): Seals the crt and key columns
            filename (str): SQLite file name, ':memory:' for a throwaway store
        """
        self.filename = filename
        self.sealer = sealer
        self._lock = threading.Lock()

        try:
            self.conn = sqlite3.connect(filename, check_same_thread=False)
        except sqlite3.Error as e:
            raise PersistenceFailedError(f"Unable to open database {filename!r}: {e}") from e

        self.create_config_table()
        self.create_certificate_table()
        self.create_database_index()


    # --------------------------
    # Schema / setup
    # --------------------------

    def create_certificate_table(self) -> None:
        """ Create a table to track certificates """
        self._execute_script(
            """
            CREATE TABLE IF NOT EXISTS certificate (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                profile TEXT NOT NULL,
                name TEXT NOT NULL,
                key_type TEXT NOT NULL,
                crt TEXT NOT NULL,
                key TEXT,
                parent_id INTEGER REFERENCES certificate (id),
                inspection TEXT,
                created_at TEXT NOT NULL
            );
            """
        )

    def create_config_table(self) -> None:
        """ Create the config table and record the schema version """
        self._execute_script(
            f"""
            CREATE TABLE IF NOT EXISTS config (
                id INTEGER PRIMARY KEY,
                schema_version INTEGER
            );
            INSERT OR IGNORE INTO config (id, schema_version)
                VALUES (1, {self.default_schema_version});
            """
        )

    def create_database_index(self) -> None:
        """ Create database indexes """
        self._execute_script(
            """
            CREATE INDEX IF NOT EXISTS idx_certificate_parent ON certificate (parent_id);
            CREATE INDEX IF NOT EXISTS idx_certificate_profile ON certificate (profile);
            """
        )

    def get_schema_version(self) -> int:
        row = self._fetch("SELECT schema_version FROM config WHERE id = 1")
        return int(row[0][0]) if row else 0

    # --------------------------
    # Persistence
    # --------------------------

    def create(self, cert: Certificate) -> Certificate:
        """
        Store a new certificate record. The store assigns `id` and `created_at`.

        Args:
            cert (Certificate): The record to persist. Its id is ignored.

        Returns:
            Certificate: The stored record
        """
        created_at = now_utc()
        row = self._to_row(replace(cert, id=None, created_at=created_at))
        row.pop("id")

        columns = ", ".join(row.keys())
        placeholders = ", ".join(["?"] * len(row))
        sql = f"INSERT INTO certificate ({columns}) VALUES ({placeholders})"

        with self._lock:
            try:
                with self.conn:
                    cursor = self.conn.execute(sql, tuple(row.values()))
                    new_id = cursor.lastrowid
            except sqlite3.Error as sqlite_error:
                raise PersistenceFailedError(f"SQLite insert error: {sqlite_error}") from sqlite_error

        log.debug("Stored certificate %s (%s)", new_id, cert.profile.value)

        return replace(cert, id=new_id, created_at=created_at)

    def import_records(self, certs: Iterable[Certificate]) -> int:
        """
        Insert records keeping their ids, all or nothing.

        Returns:
            int: The number of records inserted
        """
        rows = []
        for cert in certs:
            if cert.created_at is None:
                cert = replace(cert, created_at=now_utc())
            rows.append(self._to_row(cert))

        if not rows:
            return 0

        columns = ", ".join(self._columns)
        placeholders = ", ".join(["?"] * len(self._columns))
        sql = f"INSERT INTO certificate ({columns}) VALUES ({placeholders})"

        with self._lock:
            try:
                with self.conn:
                    self.conn.executemany(sql, [tuple(row[c] for c in self._columns) for row in rows])
            except sqlite3.Error as sqlite_error:
                raise PersistenceFailedError(f"SQLite import error: {sqlite_error}") from sqlite_error

        return len(rows)

    # --------------------------
    # Queries / utilities
    # --------------------------

    def get_by_id(self, cert_id: int) -> Certificate:
        """
        Raises:
            CertificateNotFoundError: no record with this id
        """
        rows = self._fetch(
            f"SELECT {', '.join(self._columns)} FROM certificate WHERE id = ?", (cert_id,)
        )
        if not rows:
            raise CertificateNotFoundError(f"Certificate with id={cert_id} not found.")

        return self._from_row(rows[0])

    def list_all(self) -> List[Certificate]:
        """ Return every record in insertion order """
        rows = self._fetch(f"SELECT {', '.join(self._columns)} FROM certificate ORDER BY id")
        return [self._from_row(row) for row in rows]

    def list_children(self, cert_id: int) -> List[Certificate]:
        rows = self._fetch(
            f"SELECT {', '.join(self._columns)} FROM certificate WHERE parent_id = ? ORDER BY id",
            (cert_id,),
        )
        return [self._from_row(row) for row in rows]

    def count(self) -> int:
        """
        Count the number of certificates in the database.
        """
        return int(self._fetch("SELECT COUNT(*) FROM certificate")[0][0])

    def export_sql(self) -> bytes:
        """ Export the entire database as an SQL dump. Sealed columns stay sealed. """

        memory_file = io.BytesIO()

        with self._lock:
            for line in self.conn.iterdump():
                memory_file.write(line.encode('utf-8'))
                memory_file.write(b'\n')

        return memory_file.getvalue()

    def close(self) -> None:
        """ Close the database connection """
        self.conn.close()

    # --------------------------
    # Internals
    # --------------------------

    def _execute_script(self, sql: str) -> None:
        with self._lock:
            try:
                self.conn.executescript(sql)
            except sqlite3.Error as e:
                raise PersistenceFailedError(f"Failed to prepare schema: {e}") from e

    def _fetch(self, sql: str, params: Tuple[Any, ...] = ()) -> List[Tuple[Any, ...]]:
        with self._lock:
            cursor = self.conn.cursor()
            try:
                cursor.execute(sql, params)
                return cursor.fetchall()
            except sqlite3.Error as e:
                raise PersistenceFailedError(f"SQLite query error: {e}") from e
            finally:
                cursor.close()

    def _to_row(self, cert: Certificate) -> Dict[str, Any]:
        return {
            "id": cert.id,
            "profile": cert.profile.value,
            "name": cert.name,
            "key_type": cert.key_type.value,
            "crt": self.sealer.seal("crt", cert.crt),
            "key": self.sealer.seal("key", cert.key),
            "parent_id": cert.parent_id,
            "inspection": cert.inspection,
            "created_at": format_datetime(cert.created_at),
        }

    def _from_row(self, row: Tuple[Any, ...]) -> Certificate:
        data = dict(zip(self._columns, row))

        try:
            profile = Profile(data["profile"])
            key_type = KeyType(data["key_type"])
        except ValueError as e:
            raise PersistenceFailedError(f"Corrupt certificate record {data['id']}: {e}") from e

        return Certificate(
            id=data["id"],
            profile=profile,
            name=data["name"],
            key_type=key_type,
            crt=self.sealer.unseal("crt", data["crt"]),
            key=self.sealer.unseal("key", data["key"]),
            parent_id=data["parent_id"],
            inspection=data["inspection"] or "",
            created_at=parse_datetime(data["created_at"]),
        )
