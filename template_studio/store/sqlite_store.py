"""
SQLite Store Module.

This module provides a file-backed template and rate store on SQLite.
Templates are kept in the persisted row shape {id, name, data}, with
the data bag stored as JSON text.

Features:
    - Automatic schema creation
    - Unique reference numbers for rate upserts
    - Blocking sqlite3 calls run in a worker thread

Author: ML Engineering Team
"""

import asyncio
import json
import sqlite3
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from config import get_config
from template_studio.model.template import TemplateData
from template_studio.rates.rate import RateItem
from template_studio.utils.exceptions import PersistenceError, TemplateError, TemplateStudioError
from template_studio.utils.helpers import ensure_directory
from template_studio.utils.logger import get_logger
from .base import RateStore, TemplateStore, UNTITLED_TEMPLATE_NAME

# Initialize module logger
logger = get_logger(__name__)

_RATE_COLUMNS = ('id', 'reference_no', 'description', 'unit', 'rate', 'ot_rate', 'currency')


class SqliteStore(TemplateStore, RateStore):
    """
    Template and rate store backed by one SQLite file.

    Attributes:
        db_path: Path to the SQLite database file.

    Example:
        >>> store = SqliteStore("outputs/studio.db")
        >>> templates = asyncio.run(store.list_templates())
    """

    def __init__(self, db_path: Optional[Union[str, Path]] = None) -> None:
        """
        Initialize the store and create its tables.

        Args:
            db_path: Path to database file. If None, uses configuration.
        """
        if db_path:
            self.db_path = Path(db_path)
        else:
            output_dir = Path(get_config("paths.output_dir", "outputs"))
            self.db_path = output_dir / get_config("store.sqlite.name", "template_studio.db")

        ensure_directory(self.db_path.parent)
        self._create_tables()
        logger.info(f"SqliteStore initialized (db: {self.db_path})")

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _create_tables(self) -> None:
        try:
            conn = self._connect()
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS templates (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    data TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
                CREATE TABLE IF NOT EXISTS rates (
                    id TEXT PRIMARY KEY,
                    reference_no TEXT NOT NULL UNIQUE,
                    description TEXT,
                    unit TEXT,
                    rate REAL,
                    ot_rate REAL,
                    currency TEXT
                );
            """)
            conn.commit()
            conn.close()
            logger.debug("Database tables created/verified")
        except sqlite3.Error as e:
            raise PersistenceError("create tables", str(e))

    async def _run(self, operation: str, func, *args):
        try:
            return await asyncio.to_thread(func, *args)
        except PersistenceError:
            raise
        except (sqlite3.Error, ValueError, TemplateStudioError) as e:
            logger.error(f"Store operation '{operation}' failed: {e}")
            raise PersistenceError(operation, str(e))

    # -------------------------------------------------------------------------
    # Templates
    # -------------------------------------------------------------------------

    @staticmethod
    def _template_from_row(row: sqlite3.Row) -> TemplateData:
        return TemplateData.from_row({'id': row['id'], 'name': row['name'], 'data': json.loads(row['data'])})

    def _list_templates(self) -> List[TemplateData]:
        conn = self._connect()
        try:
            rows = conn.execute("SELECT * FROM templates ORDER BY updated_at DESC").fetchall()
        finally:
            conn.close()
        templates = []
        for row in rows:
            try:
                templates.append(self._template_from_row(row))
            except (ValueError, AttributeError, TypeError, TemplateError) as e:
                logger.warning(f"Skipping unreadable template row {row['id']}: {e}")
        return templates

    def _save_template(self, template: TemplateData) -> TemplateData:
        row = template.to_row()
        name = row['name'] or UNTITLED_TEMPLATE_NAME
        data = json.dumps(row['data'], ensure_ascii=False)
        updated_at = datetime.now().isoformat()

        conn = self._connect()
        try:
            if template.id:
                cursor = conn.execute(
                    "UPDATE templates SET name = ?, data = ?, updated_at = ? WHERE id = ?",
                    (name, data, updated_at, template.id),
                )
                if cursor.rowcount == 0:
                    raise PersistenceError("save template", f"no template with id {template.id}")
                template_id = template.id
            else:
                template_id = uuid.uuid4().hex
                conn.execute(
                    "INSERT INTO templates (id, name, data, updated_at) VALUES (?, ?, ?, ?)",
                    (template_id, name, data, updated_at),
                )
            conn.commit()
            stored = conn.execute("SELECT * FROM templates WHERE id = ?", (template_id,)).fetchone()
        finally:
            conn.close()
        return self._template_from_row(stored)

    def _delete_template(self, template_id: str) -> None:
        conn = self._connect()
        try:
            conn.execute("DELETE FROM templates WHERE id = ?", (template_id,))
            conn.commit()
        finally:
            conn.close()

    async def list_templates(self) -> List[TemplateData]:
        return await self._run("list templates", self._list_templates)

    async def save_template(self, template: TemplateData) -> TemplateData:
        saved = await self._run("save template", self._save_template, template)
        logger.info(f"Saved template '{saved.name}' ({saved.id})")
        return saved

    async def delete_template(self, template_id: str) -> None:
        await self._run("delete template", self._delete_template, template_id)

    # -------------------------------------------------------------------------
    # Rates
    # -------------------------------------------------------------------------

    @staticmethod
    def _rate_values(rate: RateItem, rate_id: str) -> tuple:
        return (rate_id, rate.reference_no, rate.description, rate.unit, rate.rate, rate.ot_rate, rate.currency)

    def _list_rates(self) -> List[RateItem]:
        conn = self._connect()
        try:
            rows = conn.execute("SELECT * FROM rates ORDER BY reference_no ASC").fetchall()
        finally:
            conn.close()
        return [RateItem.from_dict(dict(row)) for row in rows]

    def _write_rates(self, rates: Sequence[RateItem], upsert: bool) -> List[RateItem]:
        placeholders = ', '.join('?' for _ in _RATE_COLUMNS)
        sql = f"INSERT INTO rates ({', '.join(_RATE_COLUMNS)}) VALUES ({placeholders})"
        if upsert:
            sql += (
                " ON CONFLICT(reference_no) DO UPDATE SET description = excluded.description,"
                " unit = excluded.unit, rate = excluded.rate, ot_rate = excluded.ot_rate,"
                " currency = excluded.currency"
            )
        conn = self._connect()
        try:
            for rate in rates:
                conn.execute(sql, self._rate_values(rate, uuid.uuid4().hex))
            conn.commit()
            references = [r.reference_no for r in rates]
            rows: Dict[str, Any] = {}
            for reference in references:
                row = conn.execute("SELECT * FROM rates WHERE reference_no = ?", (reference,)).fetchone()
                rows[reference] = RateItem.from_dict(dict(row))
        finally:
            conn.close()
        return [rows[r] for r in references]

    def _update_rate(self, rate: RateItem) -> RateItem:
        conn = self._connect()
        try:
            cursor = conn.execute(
                "UPDATE rates SET reference_no = ?, description = ?, unit = ?, rate = ?, ot_rate = ?, currency = ?"
                " WHERE id = ?",
                self._rate_values(rate, rate.id)[1:] + (rate.id,),
            )
            conn.commit()
        finally:
            conn.close()
        if cursor.rowcount == 0:
            raise PersistenceError("update rate", f"no rate with id {rate.id}")
        return rate

    def _delete_rates(self, rate_id: Optional[str]) -> int:
        conn = self._connect()
        try:
            if rate_id is None:
                cursor = conn.execute("DELETE FROM rates")
            else:
                cursor = conn.execute("DELETE FROM rates WHERE id = ?", (rate_id,))
            conn.commit()
        finally:
            conn.close()
        return cursor.rowcount

    async def list_rates(self) -> List[RateItem]:
        return await self._run("list rates", self._list_rates)

    async def insert_rates(self, rates: Sequence[RateItem]) -> List[RateItem]:
        inserted = await self._run("insert rates", self._write_rates, list(rates), False)
        logger.info(f"Inserted {len(inserted)} rate(s)")
        return inserted

    async def upsert_rates(self, rates: Sequence[RateItem]) -> List[RateItem]:
        stored = await self._run("upsert rates", self._write_rates, list(rates), True)
        logger.info(f"Upserted {len(stored)} rate(s)")
        return stored

    async def update_rate(self, rate: RateItem) -> RateItem:
        if not rate.id:
            raise PersistenceError("update rate", "rate id is required for update")
        return await self._run("update rate", self._update_rate, rate)

    async def delete_rate(self, rate_id: str) -> None:
        await self._run("delete rate", self._delete_rates, rate_id)

    async def delete_all_rates(self) -> int:
        return await self._run("delete rates", self._delete_rates, None)
