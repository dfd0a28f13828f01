"""Tests des endpoints techniques: santé, métriques et en-têtes de middleware."""

from __future__ import annotations

from scriptvault.core.http_constants import HTTP_NOT_FOUND, HTTP_OK


def test_health_pings_database(client) -> None:
    """/health répond ok avec le dialecte de stockage."""
    resp = client.get("/health")
    assert resp.status_code == HTTP_OK
    body = resp.json()
    assert body["status"] == "ok"
    assert body["db"] == "ok"
    assert body["storage"] == "sqlite"
    assert "X-Request-ID" in resp.headers
    assert "X-Process-Time-ms" in resp.headers


def test_metrics_exposes_script_counters(client) -> None:
    """/metrics expose les compteurs métier au format Prometheus."""
    client.get("/health")
    resp = client.get("/metrics")
    assert resp.status_code == HTTP_OK
    assert "http_requests_total" in resp.text
    assert "script_writes_total" in resp.text


def test_unknown_route_uses_error_envelope(client) -> None:
    """Une route inconnue renvoie l'enveloppe standard."""
    resp = client.get("/nope")
    assert resp.status_code == HTTP_NOT_FOUND
    assert resp.json()["code"] == "NOT_FOUND"
