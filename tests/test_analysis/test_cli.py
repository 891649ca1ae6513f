"""End-to-end tests for the bandscope command."""

import json

import numpy as np
import pytest
import soundfile as sf

from bandscope import __version__
from bandscope.cli import build_parser, main
from bandscope.utils.errors import ConfigurationError


def _write_tone(path, sr=22050, frequency=440.0):
    t = np.arange(sr) / sr
    sf.write(str(path), 0.5 * np.sin(2 * np.pi * frequency * t), sr)
    return path


@pytest.fixture
def workdir(tmp_path, monkeypatch, restore_logging):
    monkeypatch.chdir(tmp_path)
    return tmp_path


def _run(argv):
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    return exc_info.value.code


class TestParser:

    def test_analysis_mode(self):
        args = build_parser().parse_args(["-b", "-r", "samples"])
        assert args.batch and args.recursive
        assert [str(p) for p in args.inputs] == ["samples"]

    def test_compare_mode(self):
        args = build_parser(compare=True).parse_args(["a.wav", "b.wav", "-o", "r.txt"])
        assert str(args.track1) == "a.wav"
        assert str(args.output_file) == "r.txt"


class TestMain:

    def test_version(self, workdir, capsys):
        assert _run(["--version"]) == 0
        assert f"BandScope {__version__}" in capsys.readouterr().out

    def test_single_file_with_json(self, workdir, capsys):
        track = _write_tone(workdir / "tone.wav")
        output = workdir / "result.json"

        assert _run([str(track), "--output", str(output)]) == 0

        out = capsys.readouterr().out
        assert "BANDSCOPE ANALYSIS RESULTS" in out
        assert "Audio file analysis (1.00 seconds)" in out
        data = json.loads(output.read_text())
        assert data["total_files"] == 1

    def test_missing_file(self, workdir, capsys):
        assert _run([str(workdir / "missing.wav")]) == 1
        assert "not found" in capsys.readouterr().out

    def test_batch_directory_writes_default_text_file(self, workdir, capsys):
        samples = workdir / "samples"
        samples.mkdir()
        _write_tone(samples / "a.wav")
        _write_tone(samples / "b.wav", frequency=880.0)

        assert _run([str(samples)]) == 0

        out = capsys.readouterr().out
        assert "Successful: 2" in out
        reports = list(workdir.glob("bandscope_results_*.txt"))
        assert len(reports) == 1
        assert "FILE: a.wav" in reports[0].read_text()

    def test_batch_failure_sets_exit_code(self, workdir):
        samples = workdir / "samples"
        samples.mkdir()
        _write_tone(samples / "good.wav")
        (samples / "bad.wav").write_bytes(b"not audio at all" * 8)

        assert _run(["--batch", str(samples), "-o", str(workdir / "out.txt")]) == 1
        assert "FILE: good.wav" in (workdir / "out.txt").read_text()

    def test_compare(self, workdir, capsys):
        vocals = _write_tone(workdir / "vocals.wav")
        guitar = _write_tone(workdir / "guitar.wav", frequency=330.0)
        report = workdir / "report.json"

        assert _run(["compare", str(vocals), str(guitar), "--output", str(report)]) == 0

        out = capsys.readouterr().out
        assert "BANDSCOPE INTERFERENCE REPORT" in out
        assert "Band overlaps:" in out
        assert len(json.loads(report.read_text())["report"]["overlaps"]) == 7

    def test_compare_mismatched_rates(self, workdir, capsys):
        a = _write_tone(workdir / "a.wav", sr=22050)
        b = _write_tone(workdir / "b.wav", sr=44100)

        assert _run(["compare", str(a), str(b)]) == 1
        assert "different sample rates" in capsys.readouterr().out

    def test_invalid_config_file_rejected(self, workdir):
        (workdir / "bandscope.yaml").write_text("analysis:\n  spectral:\n    fft_size: 'x'\n")
        track = _write_tone(workdir / "tone.wav")
        with pytest.raises(ConfigurationError):
            main([str(track)])
