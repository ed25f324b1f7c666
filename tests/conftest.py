import json
import os
import stat
import sys

import pytest

from loudconcat.models.config import BatchConfig

FAKE_ENGINE = r'''#!{python}
"""Stand-in for ffmpeg covering the analysis, transform and concat modes."""
import json
import os
import sys
import time

argv = sys.argv[1:]

log_path = os.environ.get("FAKE_ENGINE_LOG")
if log_path:
    with open(log_path, "a") as f:
        f.write(json.dumps(argv) + "\n")


def value(flag):
    return argv[argv.index(flag) + 1]


def listed(var, path):
    names = [n for n in os.environ.get(var, "").split(",") if n]
    return os.path.basename(path) in names


def hang():
    pid_file = os.environ.get("FAKE_PID_FILE")
    if pid_file:
        with open(pid_file, "w") as f:
            f.write(str(os.getpid()))
    time.sleep(60)


if "concat" in argv:
    mode = os.environ.get("FAKE_CONCAT", "ok")
    if mode == "fail":
        sys.stderr.write("[concat] Impossible to open file\n")
        sys.exit(1)
    if mode == "sleep":
        hang()
    out = argv[-1]
    with open(out, "wb") as dst:
        for line in open(value("-i")):
            line = line.strip()
            if not line.startswith("file "):
                continue
            path = line[len("file "):][1:-1].replace("'\\''", "'")
            with open(path, "rb") as src:
                dst.write(src.read())
    sys.exit(0)

src = value("-i")

if argv[-1] == "-":
    sys.stderr.write("ffmpeg version 6.1-fake Copyright (c) 2000-2023\n")
    sys.stderr.write("Input #0, mov,mp4,m4a, from '%s':\n" % src)
    sys.stderr.write("  Stream #0:1(und): Audio: aac (LC), 48000 Hz, stereo\n")
    if listed("FAKE_MEASURE_SLEEP", src):
        hang()
    if listed("FAKE_MEASURE_FAIL", src):
        sys.stderr.write("Error while decoding stream #0:1\n")
        sys.exit(1)
    if listed("FAKE_MEASURE_GARBAGE", src):
        sys.stderr.write("size=N/A time=00:00:10.00 bitrate=N/A speed= 412x\n")
        sys.exit(0)
    report = {
        "input_i": os.environ.get("FAKE_INPUT_I", "-23.40"),
        "input_tp": "-4.12",
        "input_lra": "6.30",
        "input_thresh": "-33.91",
        "output_i": "-16.02",
        "output_tp": "-1.00",
        "output_lra": "5.10",
        "output_thresh": "-26.48",
        "normalization_type": "dynamic",
        "target_offset": "0.02",
    }
    sys.stderr.write("[Parsed_loudnorm_0 @ 0x5581c0e4a2c0] \n")
    sys.stderr.write(json.dumps(report, indent=1) + "\n")
    sys.stderr.write("[out#0/null @ 0x5581c0e3f100] video:0kB audio:1875kB\n")
    sys.exit(0)

if listed("FAKE_NORMALIZE_FAIL", src):
    sys.stderr.write("Conversion failed!\n")
    sys.exit(1)
if listed("FAKE_NORMALIZE_SLEEP", src):
    hang()
if listed("FAKE_NORMALIZE_DELAY", src):
    time.sleep(0.5)
with open(src, "rb") as fin, open(argv[-1], "wb") as fout:
    fout.write(fin.read())
sys.stderr.write("Normalization Type: Linear\n")
'''


@pytest.fixture
def fake_engine(tmp_path, monkeypatch):
    if os.name == "nt":
        pytest.skip("fake engine script needs a POSIX shebang")
    path = tmp_path / "bin" / "fake-ffmpeg"
    path.parent.mkdir()
    path.write_text(FAKE_ENGINE.replace("{python}", sys.executable))
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    monkeypatch.setenv("FAKE_ENGINE_LOG", str(tmp_path / "engine.log"))
    return path


@pytest.fixture
def engine_calls(tmp_path):
    """Read back the argv of every fake engine invocation, in call order."""

    def _calls():
        log = tmp_path / "engine.log"
        if not log.exists():
            return []
        return [json.loads(line) for line in log.read_text().splitlines()]

    return _calls


@pytest.fixture
def config(fake_engine):
    return BatchConfig(engine_path=str(fake_engine), retry_backoff=0, write_report=True)


@pytest.fixture
def make_source(tmp_path):
    """Create a source folder with the given files and list file text."""

    def _make(files: dict, listing: str):
        src = tmp_path / "src"
        src.mkdir(exist_ok=True)
        for name, content in files.items():
            p = src / name
            p.parent.mkdir(parents=True, exist_ok=True)
            p.write_bytes(content)
        (src / "files.txt").write_text(listing)
        return src

    return _make
