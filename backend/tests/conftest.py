import random
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from thisorthat.config import Settings, settings as app_settings
from thisorthat.core.data_loader import load_designs
from thisorthat.core.models import Design, Selection
from thisorthat.core.session_manager import SessionManager

COMPLETED_AT = datetime(2025, 1, 30, 10, 0, 0)

@pytest.fixture
def completed_at():
    return COMPLETED_AT

@pytest.fixture
def sample_designs():
    """The bundled sample catalogue (8 designs)"""
    return load_designs(app_settings.FALLBACK_DESIGNS_FILE)

@pytest.fixture
def worked_example():
    """d1 picked twice, d2 once"""
    designs = [
        Design(id="d1", tags={"style": ["Minimalist"]}),
        Design(id="d2", tags={"style": ["Bold"]}),
    ]
    selections = [
        Selection(selected_id="d1", rejected_id="d2", round_number=1),
        Selection(selected_id="d1", rejected_id="d2", round_number=2),
        Selection(selected_id="d2", rejected_id="d1", round_number=3),
    ]
    return selections, designs

@pytest.fixture
def quiz_settings():
    return Settings(
        MIN_CHOICES_REQUIRED=3,
        MAX_ROUNDS_PER_SESSION=2,
        MAX_SESSIONS=2,
        RANDOM_SEED=42,
    )

@pytest.fixture
def manager(sample_designs, quiz_settings):
    return SessionManager(sample_designs, quiz_settings, rng=random.Random(42))

@pytest.fixture
def client(manager):
    from thisorthat.main import app
    from thisorthat.api.routes import get_session_manager

    app.dependency_overrides[get_session_manager] = lambda: manager
    yield TestClient(app)
    app.dependency_overrides.clear()

def play_rounds(manager, session_id, rounds, pick=0):
    """Choose the design at position ``pick`` of each pair"""
    selections = []
    for _ in range(rounds):
        pair = manager.next_pair(session_id)
        selections.append(manager.record_selection(session_id, pair[pick].id))
    return selections

@pytest.fixture
def play():
    return play_rounds
