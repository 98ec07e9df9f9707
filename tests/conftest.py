"""
Pytest configuration and shared fixtures for stockledger tests.
"""
import os
import tempfile
from datetime import datetime, timedelta, timezone

import pytest

from stockledger import create_app
from stockledger.extensions import db
from stockledger.services.ledger import receive_lot

BASE_TIME = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(scope='function')
def app():
    """Create and configure a new app instance for each test."""
    # Create a temporary file to use as the database
    db_fd, db_path = tempfile.mkstemp(suffix='.db')

    app = create_app({
        'TESTING': True,
        'DATABASE_URL': f'sqlite:///{db_path}',
        'SECRET_KEY': 'test-secret-key',
        'LEDGER_RETRY_BACKOFF_SECONDS': 0,
    })

    with app.app_context():
        db.create_all()

    yield app

    # Clean up database
    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()

    os.close(db_fd)
    os.unlink(db_path)


@pytest.fixture
def client(app):
    """A test client for the app."""
    return app.test_client()


@pytest.fixture
def runner(app):
    """A test runner for the app's Click commands."""
    return app.test_cli_runner()


@pytest.fixture
def make_lot(app):
    """Receive a lot with sensible defaults; `hours` offsets received_at from BASE_TIME."""

    def _make_lot(name='flour', quantity=10, hours=0, category='baking', **overrides):
        success, message, lot = receive_lot(
            name=name,
            category=category,
            quantity=quantity,
            expiration_date=overrides.pop('expiration_date', '2030-01-01T00:00:00+00:00'),
            delivery_date=overrides.pop('delivery_date', '2026-01-01T00:00:00+00:00'),
            received_at=BASE_TIME + timedelta(hours=hours),
            **overrides,
        )
        assert success, message
        return lot.id

    return _make_lot
