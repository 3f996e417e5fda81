from __future__ import annotations

import pytest

from doorlock.__main__ import _build_config, _parse_args, main


def test_flags_override_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DOORLOCK_LISTEN_PORT", "4000")
    monkeypatch.setenv("DOORLOCK_REPS", "7")

    config = _build_config(_parse_args(["--port", "3100", "--no-check-cert", "--host", "127.0.0.1"]))

    assert config.listen_port == 3100
    assert config.listen_host == "127.0.0.1"
    assert config.check_cert is False
    assert config.reps == 7


def test_no_flags_uses_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DOORLOCK_CHECK_CERT", "false")

    config = _build_config(_parse_args([]))

    assert config.check_cert is False
    assert config.listen_port == 3000


def test_invalid_configuration_exits_with_status_2(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setenv("DOORLOCK_REPS", "many")

    assert main([]) == 2
    assert "DOORLOCK_REPS" in capsys.readouterr().err
