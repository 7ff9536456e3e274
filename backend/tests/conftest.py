"""
Pytest fixtures for stockkeep backend tests.

Every fixture that touches storage runs once per backend ("sql" on
in-memory SQLite, "document" in memory), so each store test proves both
backends behave the same.
"""

import pytest

from stockkeep import create_app
from stockkeep.domain import Actor, Role
from stockkeep.extensions import db
from stockkeep.services import auth_service
from stockkeep.services.inventory import InventoryLedger, EXTENSION_KEY

TEST_PIN = "2468"
START_MS = 1_700_000_000_000


class FakeClock:
    """Deterministic epoch-ms clock. Time only moves when a test says so."""

    def __init__(self, start: int = START_MS):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def tick(self, ms: int = 1) -> int:
        self.now += ms
        return self.now


@pytest.fixture(params=["sql", "document"])
def app(request):
    """Create application for testing, once per storage backend."""
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-secret-key',
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'STORAGE_BACKEND': request.param,
        'DOCUMENT_STORE_PATH': '',
        'PIN_HASH_ROUNDS': 4,
        'AUTO_CREATE_SCHEMA': False,
        'SEED_DEFAULT_DATA': False,
        'SEED_SAMPLE_ITEMS': False,
    })

    with app.app_context():
        app_ledger = app.extensions[EXTENSION_KEY]
        app_ledger.schema.create_schema()
        yield app
        db.session.remove()
        app_ledger.schema.drop_schema()


@pytest.fixture
def backend_name(app):
    return app.config['STORAGE_BACKEND']


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ledger(app, clock):
    """Facade over the app's backend, driven by the fake clock."""
    backend = app.extensions[EXTENSION_KEY].backend
    return InventoryLedger(backend, clock=clock, pin_rounds=4)


@pytest.fixture
def users(ledger):
    """One active user per role, all with TEST_PIN."""
    return {
        "owner": ledger.users.register("olivia", TEST_PIN, "Olivia Owner", Role.OWNER),
        "manager": ledger.users.register("marco", TEST_PIN, "Marco Manager", Role.MANAGER),
        "staff": ledger.users.register("sam", TEST_PIN, "Sam Staff", Role.STAFF),
    }


@pytest.fixture
def actors(users):
    return {role: Actor.from_user(user) for role, user in users.items()}


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


def _headers_for(user):
    return {"Authorization": f"Bearer {auth_service.issue_token(user.id)}"}


@pytest.fixture
def owner_headers(users):
    return _headers_for(users["owner"])


@pytest.fixture
def manager_headers(users):
    return _headers_for(users["manager"])


@pytest.fixture
def staff_headers(users):
    return _headers_for(users["staff"])


@pytest.fixture
def make_item(ledger, actors):
    """Create an item through the stock protocol (initial stock is ledgered)."""
    def _make(name="Rice 5kg", category="Grains", quantity=10, low_stock_threshold=5, **extra):
        data = {
            "name": name,
            "category": category,
            "quantity": quantity,
            "low_stock_threshold": low_stock_threshold,
            **extra,
        }
        return ledger.stock.create_item_with_initial_stock(data, actors["owner"])
    return _make
