"""
Thin data-access layer around the `records` table.
Fires the Record lifecycle hooks around every write.
"""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING, Any, Dict, List

from sqlalchemy import insert, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from ..core.codecs import JsonExpression
from ..events import emit
from .models import RecordRow, now_utc

if TYPE_CHECKING:
    from ..core.record import Record

logger = logging.getLogger(__name__)


class RecordStore:
    """Thin data‑access layer around the `records` table."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def _new_session(self) -> Session:
        return Session(bind=self.engine)

    @staticmethod
    def _row_values(rec: Record) -> Dict[str, Any]:
        field = rec.dynamic_attributes.storage_field
        payload = getattr(rec, field)
        if isinstance(payload, JsonExpression):
            payload = payload.value
        return {
            "fields": rec.model_dump(mode="json", exclude={field}),
            "payload": payload,
        }

    # ---- writes ---------------------------------------------------------
    def insert(self, rec: Record) -> None:
        """Insert `rec` as a new row, running the create hooks around it."""
        rec.before_create()
        emit("before_create", rec)

        row_vals = {
            "id": rec.id,
            "class_type": rec.__class__.__name__,
            **self._row_values(rec),
        }
        with self._new_session() as s, s.begin():
            s.execute(insert(RecordRow).values(**row_vals))
        rec._mark_stored()
        logger.debug("inserted %s %s", rec.__class__.__name__, rec.id)

        emit("create", rec)

    def update(self, rec: Record) -> None:
        """Overwrite the stored row of `rec`, running the update hooks around it."""
        rec.before_update()
        emit("before_update", rec)

        q = (
            update(RecordRow)
            .where(RecordRow.id == rec.id)
            .values(updated_ts=now_utc(), **self._row_values(rec))
        )
        with self._new_session() as s, s.begin():
            result = s.execute(q)
            if result.rowcount == 0:
                raise KeyError(f"{rec.__class__.__name__} {rec.id} has no stored row")
        logger.debug("updated %s %s", rec.__class__.__name__, rec.id)

        emit("update", rec)

    def save(self, rec: Record) -> None:
        if rec.is_new:
            self.insert(rec)
        else:
            self.update(rec)

    # ---- reads ----------------------------------------------------------
    def fetch(self, rec_id: uuid.UUID) -> Dict[str, Any]:
        """Return ``{class_type, fields, payload}`` for `rec_id` or empty dict."""
        with self._new_session() as s:
            q = select(RecordRow.class_type, RecordRow.fields, RecordRow.payload).where(
                RecordRow.id == rec_id
            )
            row = s.execute(q).first()
            if row is None:
                return {}
            return {"class_type": row.class_type, "fields": row.fields, "payload": row.payload}

    def find_by_class(self, class_type: str) -> List[uuid.UUID]:
        """Return ids of every stored record of `class_type`, oldest first."""
        with self._new_session() as s:
            q = (
                select(RecordRow.id)
                .where(RecordRow.class_type == class_type)
                .order_by(RecordRow.created_ts)
            )
            return [rid for (rid,) in s.execute(q)]
