"""Tests for the app module's argparse configuration."""

from __future__ import annotations

from tz_radio.app import build_parser


def test_app_parser_backend_is_optional() -> None:
    args = build_parser().parse_args([])
    assert args.backend is None
    assert args.verbose is False
    assert args.quiet is False


def test_app_parser_accepts_backend_and_log_file() -> None:
    args = build_parser().parse_args(["--backend", "fake", "--log-file", "x.log"])
    assert args.backend == "fake"
    assert args.log_file == "x.log"
