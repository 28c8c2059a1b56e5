"""Shared pytest fixtures for the navigation database tests."""
import sqlite3
from pathlib import Path

import pytest

from navi_generator.data_models import Way
from navi_generator.database.db_operator import DBOperator


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "navi.sqlite"


@pytest.fixture
def db(db_path: Path):
    """Open operator on an initialized database."""
    operator = DBOperator(db_path)
    assert operator.open()
    assert operator.init_database()
    yield operator
    operator.close()


@pytest.fixture
def way_1(db: DBOperator) -> Way:
    way = Way(way_id=1, pre_way_id=0, next_way_id=0, speed_min=1, speed_max=3)
    assert db.save_way(way)
    return way


@pytest.fixture
def raw_conn(db_path: Path):
    """Second connection to the same file, for inspecting stored values."""
    conn = sqlite3.connect(str(db_path))
    yield conn
    conn.close()
