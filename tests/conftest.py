from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine

from dynattr import Record, init_dynattr


@pytest.fixture
def owner():
    """Bare object with an empty storage field."""
    return SimpleNamespace(data=None)


@pytest.fixture
def record_store():
    engine = create_engine("sqlite://")
    store = init_dynattr(engine)
    yield store
    Record._store = None
    engine.dispose()
