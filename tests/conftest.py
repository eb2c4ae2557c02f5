"""
Darts Scorer - Test Configuration and Fixtures

Common fixtures and test data for all test modules.
"""

from unittest.mock import MagicMock

import pytest

from src.engine.base import EngineEvent, MatchConfig, MatchMode
from src.engine.cricket import CricketEngine
from src.engine.x01 import X01Engine


# =============================================================================
# ENGINES
# =============================================================================

@pytest.fixture
def x01() -> X01Engine:
    """501, two players, single leg."""
    engine = X01Engine()
    engine.init_game("501", ["A", "B"])
    return engine


@pytest.fixture
def x01_first_to_3() -> X01Engine:
    engine = X01Engine()
    engine.init_game("501", ["A", "B"], match_config=MatchConfig(MatchMode.FIRST_TO, 3))
    return engine


@pytest.fixture
def cricket() -> CricketEngine:
    engine = CricketEngine()
    engine.init_game(["A", "B"])
    return engine


@pytest.fixture
def recorder():
    """Listener collecting every engine event."""
    events: list[EngineEvent] = []

    def listen(event: EngineEvent) -> None:
        events.append(event)

    listen.events = events
    return listen


# =============================================================================
# SUPABASE
# =============================================================================

@pytest.fixture
def mock_client():
    """Minimal mock Supabase client."""
    return MagicMock()


@pytest.fixture
def table_rows(mock_client):
    """Factory making every chained query on `mock_client.table(...)` return rows."""

    def configure(rows: list[dict]) -> MagicMock:
        table = MagicMock()
        result = MagicMock()
        result.data = rows
        for method in ("select", "insert", "update", "upsert", "delete", "eq", "order"):
            getattr(table, method).return_value = table
        table.execute.return_value = result
        mock_client.table.return_value = table
        return table

    return configure
