"""Uvicorn launcher configuration."""
from __future__ import annotations

import run_server


def test_launcher_reads_fitsocial_environment(monkeypatch) -> None:
    captured: dict = {}
    monkeypatch.setattr(run_server.uvicorn, "run", lambda target, **options: captured.update(target=target, **options))
    monkeypatch.setenv("FITSOCIAL_HOST", "0.0.0.0")
    monkeypatch.setenv("FITSOCIAL_PORT", "9100")
    monkeypatch.delenv("UVICORN_RELOAD", raising=False)

    run_server.main()

    assert captured == {"target": "fitsocial.main:app", "host": "0.0.0.0", "port": 9100, "reload": False}


def test_launcher_defaults_to_loopback(monkeypatch) -> None:
    captured: dict = {}
    monkeypatch.setattr(run_server.uvicorn, "run", lambda target, **options: captured.update(options))
    for name in ("FITSOCIAL_HOST", "FITSOCIAL_PORT", "UVICORN_RELOAD"):
        monkeypatch.delenv(name, raising=False)

    run_server.main()

    assert captured == {"host": "127.0.0.1", "port": 8000, "reload": False}
