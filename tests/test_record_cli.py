"""Tests for the record command line."""

import logging
import os

import pytest

from framepeek import record
from framepeek.logging_setup import LOG_LEVEL_ENV, setup_logging


@pytest.fixture(autouse=True)
def dummy_video(monkeypatch):
    monkeypatch.setenv("SDL_VIDEODRIVER", "dummy")
    monkeypatch.setenv("SDL_AUDIODRIVER", "dummy")


def test_parse_size():
    args = record.build_parser().parse_args(["--size", "320x200"])
    assert args.size == (320, 200)
    with pytest.raises(SystemExit):
        record.build_parser().parse_args(["--size", "wide"])


def test_collect_options_flags_override_config(tmp_path):
    cfg = tmp_path / "rec.jsonc"
    cfg.write_text('{"record": {"fps": 24, "format": "mkv"} // comment\n}', encoding="utf-8")
    args = record.build_parser().parse_args(["--config", str(cfg), "--fps", "60", "--threads", "2"])
    opts = record.collect_options(args)
    assert opts == {"fps": 60, "format": "mkv", "n_threads": 2}
    assert isinstance(opts["fps"], int)


def test_collect_options_bad_config(tmp_path):
    args = record.build_parser().parse_args(["--config", str(tmp_path / "missing.jsonc")])
    with pytest.raises(SystemExit):
        record.collect_options(args)


def test_headless_run_keeps_frames(tmp_path, capsys):
    code = record.main([
        "--headless", "--no_finalize", "--frames", "6", "--threads", "2",
        "--size", "32x18", "--out_dir", "demo", "--storage_root", str(tmp_path),
        "--log_interval", "0", "--quiet",
    ])
    assert code == 0
    frame_dir = tmp_path / "demo"
    names = sorted(os.listdir(frame_dir))
    assert names == ["%04d.png" % i for i in range(len(names))]
    assert 3 <= len(names) <= 6
    assert str(frame_dir) in capsys.readouterr().out


def test_invalid_options_exit(tmp_path):
    with pytest.raises(SystemExit):
        record.main([
            "--headless", "--no_finalize", "--frames", "1", "--threads", "999",
            "--storage_root", str(tmp_path), "--log_interval", "0",
        ])


def test_progress_line():
    from framepeek.recording.utils import format_progress

    line = format_progress(1.5, 45, 40, 2, 4, target_frames=90)
    assert line.startswith("[record]  50.00%")
    assert "frame=     45" in line and "written=     40" in line
    assert "busy=2/4" in line and "t=1.500s" in line
    assert format_progress(0.0, 0, 0, 0, 1).startswith("[record]  frame=")


@pytest.mark.parametrize(
    "flags, env, expected",
    [
        ([], None, logging.INFO),
        (["--quiet"], None, logging.WARNING),
        (["--basic_debug"], None, logging.DEBUG),
        (["--quiet"], "debug", logging.DEBUG),
        ([], "bogus", logging.INFO),
    ],
)
def test_setup_logging_levels(monkeypatch, tmp_path, flags, env, expected):
    root = logging.getLogger()
    monkeypatch.setattr(root, "handlers", [])
    monkeypatch.setattr(root, "level", root.level)
    if env is None:
        monkeypatch.delenv(LOG_LEVEL_ENV, raising=False)
    else:
        monkeypatch.setenv(LOG_LEVEL_ENV, env)
    log_file = tmp_path / "rec.log"

    setup_logging(record.build_parser().parse_args(flags + ["--log_file", str(log_file)]))
    assert root.level == expected
    assert any(isinstance(h, logging.FileHandler) for h in root.handlers)
    for h in root.handlers:
        h.close()
