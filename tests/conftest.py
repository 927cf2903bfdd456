"""
Shared fixtures.

Every test gets its own file-backed SQLite journal installed as the
global database manager.
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from db.session import DatabaseManager, set_db


@pytest.fixture(autouse=True)
def journal_db(tmp_path):
    """Fresh journal database for each test."""
    manager = DatabaseManager(f"sqlite:///{tmp_path / 'journal.db'}")
    manager.create_tables()
    set_db(manager)
    yield manager
    set_db(None)
    manager.dispose()
