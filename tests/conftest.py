"""
Notifilter Test Suite - Shared Fixtures and Configuration

Every test runs against an isolated instance root so the real allow-list
is never read or written.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def isolated_instance(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """
    Point configuration at a temporary instance root.

    Also resets cached settings and logging state before and after each
    test so caplog can capture records.
    """
    from notifilter.core.config import reset_settings
    from notifilter.core.logging import reset_logging

    instance_root = tmp_path / "instance"
    instance_root.mkdir()

    for var in (
        "NOTIFILTER_ALLOW_LIST_PATH",
        "NOTIFILTER_SOURCE_APP",
        "NOTIFILTER_LOG_LEVEL",
        "NOTIFILTER_DEBUG",
        "NOTIFILTER_LOG_JSON",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("NOTIFILTER_INSTANCE_ROOT", str(instance_root))

    reset_settings()
    reset_logging()
    yield instance_root
    reset_settings()
    reset_logging()


@pytest.fixture
def allow_list_path(tmp_path: Path) -> Path:
    """Path of a not-yet-created allow-list file."""
    return tmp_path / "userdata" / "allow_list.json"


@pytest.fixture
def write_allow_list(allow_list_path: Path):
    """
    Factory fixture writing a raw allow-list document.

    Usage:
        def test_something(write_allow_list):
            path = write_allow_list({"allowed_contacts": ["老婆"]})
    """

    def _write(document: object) -> Path:
        allow_list_path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(document, str):
            allow_list_path.write_text(document, encoding="utf-8")
        else:
            allow_list_path.write_text(json.dumps(document, ensure_ascii=False), encoding="utf-8")
        return allow_list_path

    return _write
