"""Runtime diagnostics for dependencies, backend readiness and config files."""

from __future__ import annotations

import importlib
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from .stations import load_stations_with_notice

DoctorStatus = Literal["ok", "missing", "error"]


@dataclass(frozen=True)
class DoctorCheck:
    """One readiness check result."""

    name: str
    status: DoctorStatus
    required: bool
    detail: str
    hint: str | None = None


@dataclass(frozen=True)
class DoctorReport:
    backend: str
    checks: list[DoctorCheck]

    @property
    def exit_code(self) -> int:
        """Return non-zero when any required check failed or is missing."""
        if any(check.required and check.status != "ok" for check in self.checks):
            return 2
        return 0


def run_doctor(backend: str, *, stations_file: Path | None = None) -> DoctorReport:
    """Run diagnostics for the selected backend mode."""
    checks = [probe_aiohttp(), probe_vlc(required=backend == "vlc")]
    if stations_file is not None:
        checks.append(probe_stations_file(stations_file))
    return DoctorReport(backend=backend, checks=checks)


def render_report(report: DoctorReport) -> str:
    lines = [f"tz-radio doctor (backend={report.backend})", ""]
    for check in report.checks:
        req = "required" if check.required else "optional"
        lines.append(
            f"{_status_token(check.status)} {check.name:<11} [{req}] {check.detail}"
        )
        if check.hint:
            lines.append(f"      hint: {check.hint}")
    lines.append("")
    lines.append("Result: OK" if report.exit_code == 0 else "Result: FAIL")
    return "\n".join(lines)


def probe_aiohttp() -> DoctorCheck:
    """aiohttp carries every now-playing request and ICY read."""
    try:
        module = importlib.import_module("aiohttp")
    except Exception as exc:
        return DoctorCheck(
            name="aiohttp",
            status="missing",
            required=True,
            detail=f"not importable ({exc.__class__.__name__})",
            hint="Install Python dependencies (pip install tz-radio).",
        )
    version = getattr(module, "__version__", None)
    detail = f"importable ({version})" if version else "importable"
    return DoctorCheck(name="aiohttp", status="ok", required=True, detail=detail)


def probe_vlc(*, required: bool) -> DoctorCheck:
    """Verify python-vlc import and that libVLC can build a media player."""
    try:
        vlc = importlib.import_module("vlc")
    except Exception as exc:
        return DoctorCheck(
            name="vlc/libvlc",
            status="missing",
            required=required,
            detail=f"python-vlc import failed ({exc.__class__.__name__})",
            hint="Install VLC/libVLC and ensure python-vlc can locate libVLC.",
        )
    version = getattr(vlc, "__version__", "unknown")
    try:
        instance = vlc.Instance("--no-video")
        instance.media_player_new()
    except Exception as exc:
        return DoctorCheck(
            name="vlc/libvlc",
            status="error",
            required=required,
            detail=f"python-vlc {version}; libVLC runtime unavailable ({exc.__class__.__name__})",
            hint="Install VLC/libVLC and verify runtime library search path.",
        )
    return DoctorCheck(
        name="vlc/libvlc",
        status="ok",
        required=required,
        detail=f"python-vlc {version}; libVLC {_libvlc_version(vlc)}",
    )


def probe_stations_file(path: Path) -> DoctorCheck:
    """Report whether a custom stations file exists and is usable."""
    if not path.exists():
        return DoctorCheck(
            name="stations",
            status="ok",
            required=False,
            detail=f"no custom file at {path}; using built-in stations",
        )
    stations, notice = load_stations_with_notice(path)
    if notice is not None:
        return DoctorCheck(
            name="stations",
            status="error",
            required=False,
            detail=notice.splitlines()[0],
            hint=notice.splitlines()[-1],
        )
    return DoctorCheck(
        name="stations",
        status="ok",
        required=False,
        detail=f"{len(stations)} station(s) from {path}",
    )


def _status_token(status: DoctorStatus) -> str:
    if status == "ok":
        return "[OK]"
    if status == "missing":
        return "[MISS]"
    return "[ERR]"


def _libvlc_version(vlc: object) -> str:
    getter = getattr(vlc, "libvlc_get_version", None)
    if not callable(getter):
        return "detected"
    try:
        release = getter()
    except Exception:
        return "detected"
    if isinstance(release, bytes):
        return release.decode("utf-8", errors="replace")
    return str(release) if release else "detected"
