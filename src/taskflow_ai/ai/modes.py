# src/taskflow_ai/ai/modes.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
import time
from pathlib import Path

from .models import Mode, ProviderType

logger = logging.getLogger(__name__)

DEFAULT_MODES: tuple[Mode, ...] = (
    Mode(
        name="Correct Me My English",
        system_prompt=(
            "You are an English language expert. Correct grammar, spelling and punctuation "
            "in the provided text while keeping its meaning and tone. "
            "Only output the corrected text, nothing else."
        ),
        provider=ProviderType.GEMINI,
        is_built_in=True,
    ),
    Mode(
        name="Enhance Prompt",
        system_prompt=(
            "You are a prompt engineering expert. Rewrite the provided prompt so it is clear, "
            "specific and well structured for an AI assistant. "
            "Only output the improved prompt, nothing else."
        ),
        provider=ProviderType.GEMINI,
        is_built_in=True,
    ),
    Mode(
        name="Make Professional",
        system_prompt=(
            "Rewrite the provided text in a concise, professional tone suitable for work "
            "communication. Only output the rewritten text, nothing else."
        ),
        provider=ProviderType.ZAI,
        is_built_in=True,
    ),
)

EXPLAIN_MODE = Mode(
    name="Explain",
    system_prompt=(
        "You are an expert explainer. If an image or document is attached, analyze and explain it "
        "clearly and concisely. Otherwise, analyze the provided text. Break down complex concepts "
        "into understandable language. Only output the explanation, nothing else."
    ),
    provider=ProviderType.GEMINI,
    is_built_in=True,
)

# Built-ins shipped by older versions and no longer offered.
DEPRECATED_BUILT_IN_MODES = frozenset({"Simplify", "Break Down"})


class ModeStore:
    """
    SQLite registry of enhancement modes, ordered by sort_order.

    The schema is simple and migration-safe:
    - create table if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "modes.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        logger.info("ModeStore ready db=%s total=%s", self._db_path, self.count_modes())

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS ai_modes (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    system_prompt TEXT NOT NULL,
                    provider TEXT NOT NULL DEFAULT 'gemini',
                    model_name TEXT NOT NULL DEFAULT '',
                    is_built_in INTEGER NOT NULL DEFAULT 0,
                    sort_order INTEGER NOT NULL DEFAULT 0,
                    created_at REAL NOT NULL
                )
                """
            )

            cur.execute("PRAGMA table_info(ai_modes)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE ai_modes ADD COLUMN {name} {decl}")
                logger.info("ModeStore migration: added column %s", name)

            add_col("provider", "TEXT NOT NULL DEFAULT 'gemini'")
            add_col("model_name", "TEXT NOT NULL DEFAULT ''")
            add_col("is_built_in", "INTEGER NOT NULL DEFAULT 0")
            add_col("sort_order", "INTEGER NOT NULL DEFAULT 0")

            cur.execute("CREATE INDEX IF NOT EXISTS idx_ai_modes_order ON ai_modes(sort_order, id)")
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_mode(row: sqlite3.Row) -> Mode:
        try:
            provider = ProviderType(row["provider"])
        except ValueError:
            logger.warning("Mode id=%s has unknown provider %r, using gemini", row["id"], row["provider"])
            provider = ProviderType.GEMINI
        return Mode(
            id=int(row["id"]),
            name=str(row["name"]),
            system_prompt=str(row["system_prompt"]),
            provider=provider,
            model_name=str(row["model_name"] or ""),
            is_built_in=bool(row["is_built_in"]),
            sort_order=int(row["sort_order"]),
        )

    @staticmethod
    def _validate(name: str, system_prompt: str, provider: ProviderType | str) -> tuple[str, str, ProviderType]:
        name = (name or "").strip()
        system_prompt = (system_prompt or "").strip()
        if not name:
            raise ValueError("Mode name must not be empty")
        if not system_prompt:
            raise ValueError("Mode system prompt must not be empty")
        if not isinstance(provider, ProviderType):
            provider = ProviderType.parse(provider)
        return name, system_prompt, provider

    # ---- queries ----

    def count_modes(self) -> int:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT COUNT(*) AS c FROM ai_modes").fetchone()
            return int(row["c"]) if row else 0
        finally:
            conn.close()

    def list_modes(self) -> list[Mode]:
        conn = self._get_conn()
        try:
            rows = conn.execute("SELECT * FROM ai_modes ORDER BY sort_order ASC, id ASC").fetchall()
        finally:
            conn.close()
        return [self._row_to_mode(r) for r in rows]

    def get_mode(self, mode_id: int) -> Mode | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM ai_modes WHERE id = ?", (int(mode_id),)).fetchone()
        finally:
            conn.close()
        return self._row_to_mode(row) if row else None

    def get_mode_by_name(self, name: str) -> Mode | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM ai_modes WHERE name = ? COLLATE NOCASE ORDER BY sort_order, id LIMIT 1",
                ((name or "").strip(),),
            ).fetchone()
        finally:
            conn.close()
        return self._row_to_mode(row) if row else None

    # ---- mutations ----

    def add_mode(
        self,
        *,
        name: str,
        system_prompt: str,
        provider: ProviderType | str,
        model_name: str = "",
        is_built_in: bool = False,
    ) -> int:
        """Append a mode after the last one. Returns its id."""
        name, system_prompt, provider = self._validate(name, system_prompt, provider)

        conn = self._get_conn()
        try:
            with conn:
                row = conn.execute("SELECT MAX(sort_order) AS m FROM ai_modes").fetchone()
                max_order = row["m"] if row and row["m"] is not None else -1
                cur = conn.execute(
                    """
                    INSERT INTO ai_modes (name, system_prompt, provider, model_name, is_built_in, sort_order, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        name,
                        system_prompt,
                        provider.value,
                        (model_name or "").strip(),
                        1 if is_built_in else 0,
                        int(max_order) + 1,
                        time.time(),
                    ),
                )
                mode_id = int(cur.lastrowid)
        finally:
            conn.close()

        logger.info("Mode added id=%s name=%s provider=%s", mode_id, name, provider.value)
        return mode_id

    def update_mode(
        self,
        mode_id: int,
        *,
        name: str | None = None,
        system_prompt: str | None = None,
        provider: ProviderType | str | None = None,
        model_name: str | None = None,
        sort_order: int | None = None,
    ) -> None:
        current = self.get_mode(mode_id)
        if current is None:
            raise KeyError(f"Mode not found: {mode_id}")

        new_name, new_prompt, new_provider = self._validate(
            current.name if name is None else name,
            current.system_prompt if system_prompt is None else system_prompt,
            current.provider if provider is None else provider,
        )
        new_model = current.model_name if model_name is None else model_name.strip()
        new_order = current.sort_order if sort_order is None else int(sort_order)

        conn = self._get_conn()
        try:
            with conn:
                conn.execute(
                    """
                    UPDATE ai_modes
                    SET name = ?, system_prompt = ?, provider = ?, model_name = ?, sort_order = ?
                    WHERE id = ?
                    """,
                    (new_name, new_prompt, new_provider.value, new_model, new_order, int(mode_id)),
                )
        finally:
            conn.close()

    def delete_mode(self, mode_id: int) -> None:
        conn = self._get_conn()
        try:
            with conn:
                conn.execute("DELETE FROM ai_modes WHERE id = ?", (int(mode_id),))
        finally:
            conn.close()
        logger.info("Mode deleted id=%s", mode_id)

    # ---- seeding ----

    def seed_defaults(self) -> None:
        """
        Idempotent first-run setup:
        1) empty table -> insert the default built-ins
        2) drop deprecated built-ins
        3) make sure the built-in Explain mode exists (appended last)
        """
        if self.count_modes() == 0:
            for mode in DEFAULT_MODES:
                self.add_mode(
                    name=mode.name,
                    system_prompt=mode.system_prompt,
                    provider=mode.provider,
                    model_name=mode.model_name,
                    is_built_in=True,
                )
            logger.info("ModeStore seeded %d default modes", len(DEFAULT_MODES))

        for mode in self.list_modes():
            if mode.is_built_in and mode.name in DEPRECATED_BUILT_IN_MODES and mode.id is not None:
                self.delete_mode(mode.id)

        if not any(m.is_built_in and m.name == EXPLAIN_MODE.name for m in self.list_modes()):
            self.add_mode(
                name=EXPLAIN_MODE.name,
                system_prompt=EXPLAIN_MODE.system_prompt,
                provider=EXPLAIN_MODE.provider,
                is_built_in=True,
            )
