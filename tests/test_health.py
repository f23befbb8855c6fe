"""
Health endpoint tests.
"""

from unittest.mock import patch

from shiftgate import __version__


def test_health_ok(client) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "version": __version__, "database": "connected"}


def test_health_db_down(client) -> None:
    with patch("shiftgate.main.engine") as engine:
        engine.connect.side_effect = RuntimeError("db down")
        response = client.get("/health")
    assert response.status_code == 503
    assert response.json()["database"] == "disconnected"
