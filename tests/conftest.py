from __future__ import annotations

import json
from pathlib import Path

import pytest

from otpgen.core.config.settings import get_settings


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    for name in ("OTPGEN_STEP_SECONDS", "OTPGEN_DIGITS", "OTPGEN_VERIFY_WINDOW", "OTPGEN_STARTUP_LOG_CONFIG"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("OTPGEN_SECRETS_FILE", str(tmp_path / "secrets.json"))
    monkeypatch.setenv("OTPGEN_LOG_LEVEL", "WARNING")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def secrets_file(tmp_path: Path) -> Path:
    path = tmp_path / "secrets.json"
    payload = {
        "accounts": {
            "github": {"secret": "JBSWY3DPEHPK3PXP", "label": "GitHub"},
            "mail": {"secret": "gezd gnbv gy3t qojq"},
        }
    }
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path
