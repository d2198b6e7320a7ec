"""Shared test fixtures."""
import pytest
from unittest.mock import MagicMock
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from scoutscan.database import Base, import_models, make_session_factory


@pytest.fixture
def db_engine():
    """In-memory SQLite engine with schema created. One shared connection across sessions."""
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    import_models()
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return make_session_factory(db_engine)


@pytest.fixture
def scan_store(session_factory):
    from scoutscan.services.scan_store import ScanStore
    return ScanStore(session_factory)


@pytest.fixture
def retry_queue(session_factory):
    from scoutscan.services.retry_queue import RetryQueue
    return RetryQueue(session_factory)


@pytest.fixture
def fake_queue():
    """Stand-in for the RQ scans queue. Records enqueue() calls."""
    queue = MagicMock()
    queue.enqueue.return_value = MagicMock(id='job-1')
    return queue


@pytest.fixture
def app(session_factory, fake_queue, monkeypatch):
    """Flask test app wired to the in-memory database and the fake queue."""
    monkeypatch.setattr('scoutscan.config.API_TOKEN', 'test-token')
    from scoutscan import create_app
    app = create_app(session_factory=session_factory, scan_queue=fake_queue)
    app.config['TESTING'] = True
    yield app


@pytest.fixture
def client(app):
    """Flask test client."""
    with app.test_client() as c:
        yield c


@pytest.fixture
def auth_headers():
    return {'Authorization': 'Bearer test-token', 'X-User-Id': 'user-1'}


@pytest.fixture
def make_scan(scan_store):
    """Factory fixture — inserts a queued scan (with its QUEUED event)."""
    counter = {'n': 0}

    def _make(raw_text='Juan Dela Cruz messaged about pricing.', **overrides):
        counter['n'] += 1
        defaults = dict(
            scan_id=f'scan-test-{counter["n"]:03d}',
            user_id='user-1',
            raw_text=raw_text,
            source_type='paste',
            industry=None,
        )
        defaults.update(overrides)
        return scan_store.create_scan(**defaults)
    return _make


@pytest.fixture
def sample_chat():
    """Pasted chat log resembling real submissions (Taglish)."""
    return (
        "Juan Dela Cruz: Hi po! Magkano po yung starter kit? Gusto ko ng extra income kasi kulang ang sahod.\n"
        "Maria Santos: Interested ako sa business, pero scam ba to? Nagtry na ako dati.\n"
        "Pedro Reyes: Thanks! Will think about it, busy lang sa work.\n"
        "Juan Dela Cruz: Sige po, salamat!\n"
    )
