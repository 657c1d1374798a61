from __future__ import annotations

import io
import os
import subprocess
import sys
from pathlib import Path

import pytest

from otpgen.cli import main
from otpgen.core.auth.totp import generate

pytestmark = pytest.mark.integration


def _use_secrets_file(monkeypatch: pytest.MonkeyPatch, path: Path) -> None:
    from otpgen.core.config.settings import get_settings

    monkeypatch.setenv("OTPGEN_SECRETS_FILE", str(path))
    get_settings.cache_clear()


def _set_stdin(monkeypatch: pytest.MonkeyPatch, data: bytes) -> None:
    monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(data), encoding="utf-8"))


def test_generate_prints_deterministic_code(capsys: pytest.CaptureFixture[str]) -> None:
    main(["generate", "JBSWY3DPEHPK3PXP", "--time", "1700000000"])
    out = capsys.readouterr().out.strip()
    assert out == generate("JBSWY3DPEHPK3PXP", 1_700_000_000)
    assert len(out) == 6
    assert out.isdigit()


def test_generate_honors_digits_and_step(capsys: pytest.CaptureFixture[str]) -> None:
    main(["generate", "GEZDGNBVGY3TQOJQ", "--time", "59", "--step", "60", "--digits", "8"])
    assert capsys.readouterr().out.strip() == generate("GEZDGNBVGY3TQOJQ", 59, 60, 8)


def test_generate_rejects_malformed_secret(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc_info:
        main(["generate", "MZXW6Y", "--time", "59"])
    assert exc_info.value.code == 1
    err = capsys.readouterr().err
    assert err.startswith("otpgen: invalid_secret: ")
    assert "bits missing" in err


def test_generate_rejects_non_positive_step() -> None:
    with pytest.raises(SystemExit) as exc_info:
        main(["generate", "JBSWY3DPEHPK3PXP", "--step", "0"])
    assert "step_seconds must be positive" in str(exc_info.value.code)


def test_code_for_stored_account(
    secrets_file: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    _use_secrets_file(monkeypatch, secrets_file)
    monkeypatch.setattr("otpgen.modules.totp.service.epoch_seconds", lambda: 1_111_111_111)

    main(["code", "github", "--remaining"])

    code, remaining = capsys.readouterr().out.split()
    assert code == generate("JBSWY3DPEHPK3PXP", 1_111_111_111)
    assert int(remaining) == 30 - (1_111_111_111 % 30)


def test_code_for_unknown_account_exits_with_not_found(
    secrets_file: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    _use_secrets_file(monkeypatch, secrets_file)
    with pytest.raises(SystemExit) as exc_info:
        main(["code", "gitlab"])
    assert exc_info.value.code == 2
    err = capsys.readouterr().err
    assert err.startswith("otpgen: not_found: ")
    assert "gitlab" in err


def test_verify_stored_account(
    secrets_file: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    _use_secrets_file(monkeypatch, secrets_file)
    monkeypatch.setattr("otpgen.modules.totp.service.epoch_seconds", lambda: 1_700_000_000)
    code = generate("GEZDGNBVGY3TQOJQ", 1_700_000_000)

    main(["verify", "mail", code])
    assert capsys.readouterr().out.strip() == "valid"

    wrong = f"{(int(code) + 1) % 1_000_000:06d}"
    with pytest.raises(SystemExit) as exc_info:
        main(["verify", "mail", wrong])
    assert exc_info.value.code == 1


def test_list_accounts(
    secrets_file: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    _use_secrets_file(monkeypatch, secrets_file)
    main(["list"])
    assert capsys.readouterr().out.splitlines() == ["github", "mail"]


def test_encode_reads_stdin(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    _set_stdin(monkeypatch, b"foobar")
    main(["encode"])
    assert capsys.readouterr().out == "MZXW6YTBOI======\n"


def test_encode_hex_with_wrapping(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    _set_stdin(monkeypatch, b"foobar")
    main(["encode", "--hex", "--wrap"])
    assert capsys.readouterr().out == "CPNMUOJ1E8======\n"


def test_decode_writes_raw_bytes(monkeypatch: pytest.MonkeyPatch, capsysbinary: pytest.CaptureFixture[bytes]) -> None:
    _set_stdin(monkeypatch, b"MZXW\n6YTB\nOI======\n")
    main(["decode"])
    assert capsysbinary.readouterr().out == b"foobar"


def test_decode_rejects_truncated_input(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    _set_stdin(monkeypatch, b"MZX")
    with pytest.raises(SystemExit) as exc_info:
        main(["decode"])
    assert exc_info.value.code == 1
    assert "25 bits missing" in capsys.readouterr().err


@pytest.mark.parametrize("code", ["12345\u00b2", "\u0661\u0662\u0663\u0664\u0665\u0666"])
def test_verify_reports_non_ascii_digits_as_invalid(
    code: str,
    secrets_file: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    _use_secrets_file(monkeypatch, secrets_file)
    with pytest.raises(SystemExit) as exc_info:
        main(["verify", "github", code])
    assert exc_info.value.code == 1
    assert capsys.readouterr().out.strip() == "invalid"


def test_module_entry_point_runs_as_subprocess(tmp_path: Path) -> None:
    repo_root = Path(__file__).resolve().parents[2]
    result = subprocess.run(
        [sys.executable, "-m", "otpgen.cli", "generate", "JBSWY3DPEHPK3PXP", "--time", "59"],
        cwd=repo_root,
        env={**os.environ, "OTPGEN_SECRETS_FILE": str(tmp_path / "secrets.json")},
        capture_output=True,
        text=True,
        check=True,
    )
    assert result.stdout.strip() == generate("JBSWY3DPEHPK3PXP", 59)
