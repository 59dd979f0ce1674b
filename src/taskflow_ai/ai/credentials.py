# src/taskflow_ai/ai/credentials.py

from __future__ import annotations

import contextlib
import logging
import os
import sqlite3
import time
from pathlib import Path

from .models import CredentialKey

logger = logging.getLogger(__name__)

DEFAULT_SERVICE = "com.taskflowpro.api-keys"


class CredentialError(Exception):
    """Saving a secret failed (empty value or storage error)."""


class SQLiteCredentialStore:
    """
    Local secret store for provider API keys.

    Rows are scoped by (service, account) like a keychain generic-password
    item. The DB file is kept private (0600) on a best-effort basis.

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path, *, service: str = DEFAULT_SERVICE) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._service = service
        self._ensure_schema()
        with contextlib.suppress(Exception):
            os.chmod(self._db_path, 0o600)
        logger.info("CredentialStore ready db=%s service=%s", self._db_path, self._service)

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS credentials (
                    service TEXT NOT NULL,
                    account TEXT NOT NULL,
                    value TEXT NOT NULL,
                    updated_at REAL NOT NULL,
                    PRIMARY KEY (service, account)
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    def save(self, value: str, key: CredentialKey) -> None:
        secret = (value or "").strip()
        if not secret:
            raise CredentialError(f"Refusing to save an empty value for {key.value}")

        conn = self._get_conn()
        try:
            with conn:
                conn.execute(
                    "DELETE FROM credentials WHERE service = ? AND account = ?",
                    (self._service, key.value),
                )
                conn.execute(
                    "INSERT INTO credentials (service, account, value, updated_at) VALUES (?, ?, ?, ?)",
                    (self._service, key.value, secret, time.time()),
                )
        except sqlite3.Error as e:
            raise CredentialError(f"Failed to save credential {key.value}: {e}") from e
        finally:
            conn.close()
        logger.info("Credential saved: %s", key.value)

    def get(self, key: CredentialKey) -> str | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT value FROM credentials WHERE service = ? AND account = ?",
                (self._service, key.value),
            ).fetchone()
        finally:
            conn.close()

        if row is None:
            return None
        value = str(row["value"] or "")
        return value or None

    def delete(self, key: CredentialKey) -> None:
        conn = self._get_conn()
        try:
            with conn:
                conn.execute(
                    "DELETE FROM credentials WHERE service = ? AND account = ?",
                    (self._service, key.value),
                )
        finally:
            conn.close()
        logger.info("Credential deleted: %s", key.value)

    def has_key(self, key: CredentialKey) -> bool:
        return self.get(key) is not None


def seed_from_env(store: SQLiteCredentialStore, values: dict[CredentialKey, str | None]) -> list[CredentialKey]:
    """Copy keys supplied via environment into the store, never overwriting saved ones."""
    seeded: list[CredentialKey] = []
    for key, value in values.items():
        if not value or not value.strip() or store.has_key(key):
            continue
        store.save(value, key)
        seeded.append(key)
    return seeded
