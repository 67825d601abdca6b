"""
Single-table schema: every Record, whatever its class, lives here.
"""

import datetime as dt

from sqlalchemy import JSON, Column, DateTime, PickleType, String, Uuid
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def now_utc() -> dt.datetime:  # compact timezone‑aware timestamp
    return dt.datetime.now(tz=dt.timezone.utc)


class RecordRow(Base):
    """One row per record; dynamic attributes travel in `payload`."""

    __tablename__ = "records"

    id = Column(Uuid(as_uuid=True), primary_key=True)
    class_type = Column(String, nullable=False, index=True)
    created_ts = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_ts = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    fields = Column(JSON, nullable=False)  # model fields minus the storage field
    payload = Column(PickleType, nullable=True)  # storage field as the codec wrote it
