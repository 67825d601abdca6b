"""
Single entry-point that wires SQLAlchemy into dynattr.
Call once during application start-up.
"""

from sqlalchemy.engine import Engine

from .core.record import Record
from .persistence.models import Base
from .persistence.store import RecordStore


def init_dynattr(engine: Engine) -> RecordStore:
    """
    Create the `records` table and inject a RecordStore into `Record`
    (and therefore into every subclass that has not been given its own).
    """
    Base.metadata.create_all(engine)
    store = RecordStore(engine)
    Record._store = store  # type: ignore[misc]
    return store
