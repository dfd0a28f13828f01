"""
Tests de concurrence réelle sur une base SQLite fichier.

Deux threads écrivent sur la même version: exactement un gagne, l'autre reçoit un conflit. Le
provisionnement concurrent ne crée qu'un script et une seule entrée bootstrap.
"""

from __future__ import annotations

import threading

from scriptvault.domain.errors import VersionConflict
from scriptvault.infra.repo.db import get_engine
from tests.fakes import FakeLLM
from tests.helpers import USER_ID, make_store

WORKERS = 2
SECOND_VERSION = 2


def _run_concurrently(fn, n: int = WORKERS) -> list:
    barrier = threading.Barrier(n)
    results: list = [None] * n

    def worker(i: int) -> None:
        barrier.wait()
        try:
            results[i] = fn(i)
        except Exception as exc:  # noqa: BLE001 - collecté pour assertion
            results[i] = exc

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(n)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)
    return results


def test_concurrent_saves_have_single_winner(tmp_path) -> None:
    """Deux sauvegardes sur v1: une réussit (v2), l'autre lève VersionConflict."""
    engine = get_engine(f"sqlite+pysqlite:///{tmp_path / 'race.db'}")
    store = make_store(engine, FakeLLM())
    presenter = store.create_presenter(USER_ID, "Ana")
    store.ensure(presenter.id, USER_ID)

    results = _run_concurrently(
        lambda i: store.save(presenter.id, USER_ID, f"writer {i}", expected_version=1)
    )

    winners = [r for r in results if not isinstance(r, Exception)]
    losers = [r for r in results if isinstance(r, VersionConflict)]
    assert len(winners) == 1
    assert len(losers) == 1
    assert winners[0].version == SECOND_VERSION
    assert losers[0].server_version == SECOND_VERSION
    assert losers[0].server_content == winners[0].content

    doc = store.ensure(presenter.id, USER_ID)
    assert doc.version == SECOND_VERSION
    assert doc.content == winners[0].content
    engine.dispose()


def test_concurrent_ensure_creates_one_document(tmp_path) -> None:
    """Deux premiers accès simultanés renvoient le même script."""
    engine = get_engine(f"sqlite+pysqlite:///{tmp_path / 'ensure.db'}")
    store = make_store(engine, FakeLLM())
    presenter = store.create_presenter(USER_ID, "Ana")

    results = _run_concurrently(lambda _i: store.ensure(presenter.id, USER_ID))

    assert not any(isinstance(r, Exception) for r in results)
    assert len({r.id for r in results}) == 1
    assert len(store.list_history(presenter.id, USER_ID)) == 1
    engine.dispose()
