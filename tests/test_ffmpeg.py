import pytest

from loudconcat.utils.ffmpeg import EngineError, EngineTimeout, run_ffmpeg


def test_captures_stderr_lines_and_streams_them(fake_engine, tmp_path):
    clip = tmp_path / "clip.mp4"
    clip.write_bytes(b"x")
    seen = []

    result = run_ffmpeg(
        ["-i", str(clip), "-f", "null", "-"],
        engine=str(fake_engine),
        timeout=30,
        on_line=seen.append,
    )

    assert result.returncode == 0
    assert result.cmd[:3] == [str(fake_engine), "-hide_banner", "-nostdin"]
    assert any("Parsed_loudnorm_0" in line for line in result.lines)
    assert sorted(seen) == sorted(result.lines)
    assert '"input_i"' in result.output


def test_non_zero_exit_raises_with_output(fake_engine, tmp_path, monkeypatch):
    clip = tmp_path / "clip.mp4"
    clip.write_bytes(b"x")
    monkeypatch.setenv("FAKE_MEASURE_FAIL", "clip.mp4")

    with pytest.raises(EngineError) as exc:
        run_ffmpeg(["-i", str(clip), "-f", "null", "-"], engine=str(fake_engine), timeout=30)

    assert exc.value.returncode == 1
    assert "Error while decoding" in exc.value.output

    result = run_ffmpeg(
        ["-i", str(clip), "-f", "null", "-"],
        engine=str(fake_engine),
        timeout=30,
        check=False,
    )
    assert result.returncode == 1


def test_timeout_keeps_output_captured_before_kill(fake_engine, tmp_path, monkeypatch):
    clip = tmp_path / "clip.mp4"
    clip.write_bytes(b"x")
    monkeypatch.setenv("FAKE_MEASURE_SLEEP", "clip.mp4")

    with pytest.raises(EngineTimeout) as exc:
        run_ffmpeg(["-i", str(clip), "-f", "null", "-"], engine=str(fake_engine), timeout=1.5)

    assert exc.value.timeout == 1.5
    assert "Input #0" in exc.value.output
    assert "timed out" in str(exc.value)
