import os
import tempfile

# Point the app at a scratch database before anything imports casino.config
_TMP_DIR = tempfile.mkdtemp(prefix="casino-tests-")
os.environ["DB_PATH"] = os.path.join(_TMP_DIR, "casino.db")
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ.setdefault("LOG_LEVEL", "WARNING")

from decimal import Decimal

import pytest

from casino.core.database import Database
from casino.core.games.blackjack import BlackjackGame
from casino.core.ledger import Ledger
from casino.core.round_state import RoundSealer
from tests.helpers import StackedDeckSource


@pytest.fixture
def db(tmp_path):
    database = Database(tmp_path / "casino.db")
    yield database
    database.close()


@pytest.fixture
def account(db):
    return db.create_account("alice", Decimal("1000.00"))


@pytest.fixture
def sealer():
    return RoundSealer("test-secret-key", max_age=3600)


@pytest.fixture
def make_blackjack(sealer):
    """BlackjackGame whose every round is dealt from the given card order."""
    def factory(*codes: str) -> BlackjackGame:
        return BlackjackGame(deck_source=StackedDeckSource(*codes), sealer=sealer)
    return factory


@pytest.fixture
def ledger(db):
    return Ledger(db)
