"""Tests for environment diagnostics probes and report behavior."""

from __future__ import annotations

import json
import types

import tz_radio.doctor as doctor_module


def test_run_doctor_fake_backend_allows_missing_vlc(monkeypatch) -> None:
    monkeypatch.setattr(
        doctor_module, "probe_aiohttp", lambda: _check("aiohttp", "ok", True)
    )
    monkeypatch.setattr(
        doctor_module,
        "probe_vlc",
        lambda **kwargs: _check("vlc/libvlc", "missing", kwargs["required"]),
    )

    report = doctor_module.run_doctor("fake")
    assert report.exit_code == 0
    assert [check.name for check in report.checks] == ["aiohttp", "vlc/libvlc"]


def test_run_doctor_vlc_backend_fails_when_vlc_missing(monkeypatch) -> None:
    monkeypatch.setattr(
        doctor_module, "probe_aiohttp", lambda: _check("aiohttp", "ok", True)
    )
    monkeypatch.setattr(
        doctor_module,
        "probe_vlc",
        lambda **kwargs: _check("vlc/libvlc", "missing", kwargs["required"]),
    )

    report = doctor_module.run_doctor("vlc")
    assert report.exit_code == 2


def test_probe_aiohttp_ok(monkeypatch) -> None:
    fake = types.SimpleNamespace(__version__="9.9.9")
    monkeypatch.setattr(doctor_module.importlib, "import_module", lambda name: fake)
    check = doctor_module.probe_aiohttp()
    assert check.status == "ok"
    assert "9.9.9" in check.detail


def test_probe_vlc_missing_module(monkeypatch) -> None:
    def _raise(name: str):
        raise ImportError(name)

    monkeypatch.setattr(doctor_module.importlib, "import_module", _raise)
    check = doctor_module.probe_vlc(required=True)
    assert check.status == "missing"
    assert check.required is True
    assert check.hint is not None


def test_probe_vlc_runtime_error(monkeypatch) -> None:
    def _instance(*args):
        raise OSError("libvlc not found")

    fake = types.SimpleNamespace(__version__="3.0", Instance=_instance)
    monkeypatch.setattr(doctor_module.importlib, "import_module", lambda name: fake)
    check = doctor_module.probe_vlc(required=False)
    assert check.status == "error"
    assert "OSError" in check.detail


def test_probe_vlc_ok_reports_libvlc_version(monkeypatch) -> None:
    class _Instance:
        def __init__(self, *args) -> None:
            pass

        def media_player_new(self) -> object:
            return object()

    fake = types.SimpleNamespace(
        __version__="3.0.20",
        Instance=_Instance,
        libvlc_get_version=lambda: b"3.0.20 Vetinari",
    )
    monkeypatch.setattr(doctor_module.importlib, "import_module", lambda name: fake)
    check = doctor_module.probe_vlc(required=True)
    assert check.status == "ok"
    assert "libVLC 3.0.20 Vetinari" in check.detail


def test_probe_stations_file_states(tmp_path) -> None:
    missing = doctor_module.probe_stations_file(tmp_path / "stations.json")
    assert missing.status == "ok"
    assert "built-in" in missing.detail

    broken = tmp_path / "broken.json"
    broken.write_text("{", encoding="utf-8")
    check = doctor_module.probe_stations_file(broken)
    assert check.status == "error"
    assert check.required is False
    assert check.hint is not None and check.hint.startswith("Next step:")

    good = tmp_path / "good.json"
    good.write_text(
        json.dumps([{"name": "A", "stream_url": "https://stream.test/a"}]),
        encoding="utf-8",
    )
    assert "1 station(s)" in doctor_module.probe_stations_file(good).detail


def test_render_report_includes_result_and_hint() -> None:
    report = doctor_module.DoctorReport(
        backend="vlc",
        checks=[
            _check("aiohttp", "ok", True),
            doctor_module.DoctorCheck(
                name="vlc/libvlc",
                status="missing",
                required=True,
                detail="missing",
                hint="install vlc",
            ),
        ],
    )
    text = doctor_module.render_report(report)
    assert "tz-radio doctor (backend=vlc)" in text
    assert "[MISS]" in text
    assert "Result: FAIL" in text
    assert "hint: install vlc" in text


def _check(name: str, status: str, required: bool) -> doctor_module.DoctorCheck:
    return doctor_module.DoctorCheck(
        name=name,
        status=status,  # type: ignore[arg-type]
        required=required,
        detail="detail",
    )
