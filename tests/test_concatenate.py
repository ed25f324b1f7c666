import tempfile
from pathlib import Path

import pytest

import loudconcat.concat.concatenate as concat_mod
from loudconcat.concat.concatenate import (
    concatenate,
    format_concat_list,
    quote_concat_path,
)
from loudconcat.errors import ConcatenationFailure, ConcatenationTimeout
from loudconcat.models.config import BatchConfig


def test_apostrophes_are_escaped():
    assert quote_concat_path(Path("/v/it's here.mp4")) == "'/v/it'\\''s here.mp4'"


def test_list_keeps_given_order(tmp_path):
    paths = [tmp_path / "z.mp4", tmp_path / "a.mp4", tmp_path / "m.mp4"]
    lines = format_concat_list(paths).splitlines()
    assert lines == [f"file '{p.resolve()}'" for p in paths]


def _write(tmp_path, names):
    out = []
    for name in names:
        p = tmp_path / name
        p.write_bytes(name.encode())
        out.append(p)
    return out


def test_concatenates_in_order_and_overwrites(fake_engine, engine_calls, config, tmp_path):
    paths = _write(tmp_path, ["b_normalized.mp4", "it's_normalized.mp4", "a_normalized.mp4"])
    stale = tmp_path / "final_concatenated.mp4"
    stale.write_bytes(b"old")

    final = concatenate(paths, tmp_path, config)

    assert final == stale
    assert final.read_bytes() == b"b_normalized.mp4it's_normalized.mp4a_normalized.mp4"
    (argv,) = engine_calls()
    assert argv[argv.index("-c") + 1] == "copy"
    assert argv[argv.index("-avoid_negative_ts") + 1] == "make_zero"
    assert argv[argv.index("-fflags") + 1] == "+genpts"
    assert not Path(argv[argv.index("-i") + 1]).exists()


def test_list_file_removed_and_no_output_on_failure(fake_engine, engine_calls, config, tmp_path, monkeypatch):
    paths = _write(tmp_path, ["a_normalized.mp4"])
    monkeypatch.setenv("FAKE_CONCAT", "fail")

    with pytest.raises(ConcatenationFailure):
        concatenate(paths, tmp_path, config)

    (argv,) = engine_calls()
    assert not Path(argv[argv.index("-i") + 1]).exists()
    assert not (tmp_path / "final_concatenated.mp4").exists()


def test_timeout_raises_and_cleans_up(fake_engine, engine_calls, tmp_path, monkeypatch):
    paths = _write(tmp_path, ["a_normalized.mp4"])
    monkeypatch.setenv("FAKE_CONCAT", "sleep")
    config = BatchConfig(engine_path=str(fake_engine), concat_timeout=1.5)

    with pytest.raises(ConcatenationTimeout):
        concatenate(paths, tmp_path, config)

    (argv,) = engine_calls()
    assert not Path(argv[argv.index("-i") + 1]).exists()


def test_empty_input_is_refused(config, tmp_path, monkeypatch):
    def _boom(*args, **kwargs):
        raise AssertionError("engine must not run")

    monkeypatch.setattr(concat_mod, "run_ffmpeg", _boom)
    with pytest.raises(ConcatenationFailure):
        concatenate([], tmp_path, config)


def test_list_file_removed_when_writing_it_fails(config, tmp_path, monkeypatch):
    scratch = tmp_path / "scratch"
    scratch.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(scratch))

    def _broken(paths):
        raise OSError("No space left on device")

    monkeypatch.setattr(concat_mod, "format_concat_list", _broken)
    with pytest.raises(OSError):
        concatenate(_write(tmp_path, ["a_normalized.mp4"]), tmp_path, config)

    assert list(scratch.iterdir()) == []
    assert not (tmp_path / "final_concatenated.mp4").exists()
