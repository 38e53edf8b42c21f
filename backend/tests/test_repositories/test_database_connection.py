"""
Unit tests for the PostgreSQL connection helper
"""
from unittest.mock import MagicMock, patch

import psycopg2
import pytest

from app.core import database
from app.core.database import get_db_connection_with_retry


@pytest.fixture(autouse=True)
def database_url(monkeypatch):
    monkeypatch.setattr(database.settings, "DATABASE_URL", "postgresql://localhost/glorda")


@patch('app.core.database.time.sleep')
@patch('app.core.database.psycopg2.connect')
def test_retries_with_backoff_then_connects(mock_connect, mock_sleep):
    conn = MagicMock()
    mock_connect.side_effect = [psycopg2.OperationalError("down"), psycopg2.OperationalError("down"), conn]

    assert get_db_connection_with_retry(max_retries=3, retry_delay=1.0) is conn
    assert [c.args[0] for c in mock_sleep.call_args_list] == [1.0, 2.0]


@patch('app.core.database.time.sleep')
@patch('app.core.database.psycopg2.connect')
def test_raises_last_error(mock_connect, mock_sleep):
    mock_connect.side_effect = psycopg2.OperationalError("still down")

    with pytest.raises(psycopg2.OperationalError):
        get_db_connection_with_retry(max_retries=2)

    assert mock_connect.call_count == 2


def test_missing_url(monkeypatch):
    monkeypatch.setattr(database.settings, "DATABASE_URL", None)

    with pytest.raises(Exception, match="DATABASE_URL"):
        get_db_connection_with_retry()
