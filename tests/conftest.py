"""Configuration de test pour pytest.

Ajoute la racine du projet au sys.path et fournit les fixtures communes: base SQLite en mémoire,
magasin de scripts branché sur un `FakeLLM`, client HTTP avec le magasin de test injecté.
"""

import os
import sys

import pytest

# Ensure project root is on sys.path so that
# imports like `from scriptvault...` resolve.
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from fastapi.testclient import TestClient  # noqa: E402

from scriptvault.core.settings import Settings  # noqa: E402
from scriptvault.infra.repo.db import get_engine  # noqa: E402
from scriptvault.infra.repo.models import Base  # noqa: E402
from tests.fakes import FakeLLM  # noqa: E402
from tests.helpers import USER_ID, make_store  # noqa: E402


@pytest.fixture
def engine():
    """Moteur SQLite en mémoire isolé par test."""
    eng = get_engine("sqlite+pysqlite:///:memory:")
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def fake_llm() -> FakeLLM:
    """LLM factice avec la sortie par défaut."""
    return FakeLLM()


@pytest.fixture
def store(engine, fake_llm):
    """Magasin de scripts sur base mémoire."""
    return make_store(engine, fake_llm)


@pytest.fixture
def presenter(store):
    """Présentateur appartenant à USER_ID."""
    return store.create_presenter(USER_ID, "Ana", {"domain": "real estate", "location": "Cluj"})


@pytest.fixture
def client(store):
    """Client HTTP dont le magasin est celui de la fixture `store`."""
    from scriptvault.api.deps import get_store
    from scriptvault.app.main import app

    app.dependency_overrides[get_store] = lambda: store
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def settings() -> Settings:
    """Settings par défaut (sans fichier .env)."""
    return Settings(_env_file=None)
