from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from influence_cms.db.conn import connect_sqlite
from influence_cms.entities import ENTITY_KINDS, EntityBase, EntityKind
from influence_cms.settings import Settings

log = logging.getLogger(__name__)


def decode_json_list(raw: Optional[str]) -> List[str]:
    """Decode a JSON text column into a list of strings.

    Empty, NULL or malformed values read back as an empty list.
    """
    if not raw:
        return []
    try:
        v = json.loads(raw)
    except ValueError:
        return []
    if not isinstance(v, list):
        return []
    return [x for x in v if isinstance(x, str)]


def encode_json_list(values: List[str]) -> str:
    return json.dumps(list(values), ensure_ascii=False)


@dataclass
class Repo:
    """Owner of the process-wide SQLite connection and the schema."""

    settings: Settings = field(default_factory=Settings.from_env)
    _conn: sqlite3.Connection | None = None

    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = connect_sqlite(self.settings.db_url)
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    # ---- schema & migrations ----
    def ensure_schema(self) -> None:
        """Create tables if missing + migrate columns if needed."""
        schema_path = Path(__file__).with_name("schema.sql")
        sql = schema_path.read_text(encoding="utf-8")
        self.conn().executescript(sql)
        self.conn().commit()
        self._migrate()
        self.conn().commit()

    def _table_columns(self, table: str) -> set[str]:
        rows = self.conn().execute(f"PRAGMA table_info({table})").fetchall()
        return {r["name"] for r in rows}

    def _ensure_column(self, table: str, col_name: str, col_def_sql: str) -> None:
        cols = self._table_columns(table)
        if col_name in cols:
            return
        self.conn().execute(f"ALTER TABLE {table} ADD COLUMN {col_def_sql}")
        log.warning("Migrated: added column %s to %s", col_name, table)

    def _migrate(self) -> None:
        # images/links arrived after the first release, localized text after that.
        for kind in ENTITY_KINDS:
            for col in kind.optional_columns:
                self._ensure_column(kind.table, col, f"{col} TEXT")


@dataclass
class EntityRepo:
    """CRUD for one entity table, driven by its EntityKind."""

    db: Repo
    kind: EntityKind

    def _select_sql(self) -> str:
        cols = ", ".join(["id"] + [f"IFNULL({c},'') AS {c}" for c in self.kind.columns])
        return f"SELECT {cols} FROM {self.kind.table}"

    def _row_to_entity(self, row: sqlite3.Row) -> EntityBase:
        d: Dict[str, Any] = dict(row)
        for col in self.kind.json_columns:
            d[col] = decode_json_list(d.get(col))
        return self.kind.model(**d)

    def _params(self, entity: EntityBase) -> List[Any]:
        data = entity.model_dump()
        params: List[Any] = [data[c] for c in self.kind.text_columns]
        params += [encode_json_list(data[c]) for c in self.kind.json_columns]
        return params

    def list(self) -> List[EntityBase]:
        rows = self.db.conn().execute(f"{self._select_sql()} ORDER BY id DESC").fetchall()
        return [self._row_to_entity(r) for r in rows]

    def get(self, entity_id: int) -> Optional[EntityBase]:
        row = self.db.conn().execute(
            f"{self._select_sql()} WHERE id=?",
            (entity_id,),
        ).fetchone()
        return self._row_to_entity(row) if row else None

    def images(self, entity_id: int) -> List[str]:
        row = self.db.conn().execute(
            f"SELECT IFNULL(images,'') AS images FROM {self.kind.table} WHERE id=?",
            (entity_id,),
        ).fetchone()
        return decode_json_list(row["images"]) if row else []

    def create(self, entity: EntityBase) -> EntityBase:
        cols = self.kind.columns
        cur = self.db.conn().execute(
            f"INSERT INTO {self.kind.table} ({', '.join(cols)}) VALUES ({', '.join(['?'] * len(cols))})",
            self._params(entity),
        )
        self.db.conn().commit()
        created = entity.model_copy(update={"id": int(cur.lastrowid)})
        log.info("Created %s id=%s images=%s", self.kind.name, created.id, len(created.images))
        return created

    def update(self, entity_id: int, entity: EntityBase) -> int:
        """Overwrite every column of the row. Missing rows are not an error."""
        assignments = ", ".join(f"{c}=?" for c in self.kind.columns)
        cur = self.db.conn().execute(
            f"UPDATE {self.kind.table} SET {assignments} WHERE id=?",
            (*self._params(entity), entity_id),
        )
        self.db.conn().commit()
        log.info("Updated %s id=%s (rows=%s)", self.kind.name, entity_id, cur.rowcount)
        return cur.rowcount

    def delete(self, entity_id: int) -> int:
        cur = self.db.conn().execute(
            f"DELETE FROM {self.kind.table} WHERE id=?",
            (entity_id,),
        )
        self.db.conn().commit()
        log.info("Deleted %s id=%s (rows=%s)", self.kind.name, entity_id, cur.rowcount)
        return cur.rowcount
