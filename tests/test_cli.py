"""Tests for the command line entry point."""

import argparse
from pathlib import Path
from unittest.mock import patch

import pytest

from clipflow.cli import build_parser, main, manifest_from_args, parse_range_arg
from clipflow.engine import RenderResult
from clipflow.errors import ProbeError
from clipflow.models import OperationKind, QualityPreset, TimeRange


class TestParseRangeArg:
    def test_valid(self):
        assert parse_range_arg("2:4.5") == TimeRange(2.0, 4.5)

    @pytest.mark.parametrize("bad", ["2", "a:b", "1:2:3"])
    def test_invalid(self, bad):
        with pytest.raises(argparse.ArgumentTypeError):
            parse_range_arg(bad)


class TestManifestFromArgs:
    def test_cut(self):
        args = build_parser().parse_args(
            ["render", "in.mp4", "--keep", "6:9", "--keep", "2:4", "--quality", "nope"]
        )
        m = manifest_from_args(args)
        assert m.operation is OperationKind.CUT
        assert m.segments == [TimeRange(6.0, 9.0), TimeRange(2.0, 4.0)]
        assert m.quality is QualityPreset.MEDIUM
        assert m.output == Path("in_edited.mp4")

    def test_remove_uses_remove_ranges(self):
        args = build_parser().parse_args(
            ["render", "in.mp4", "--op", "remove", "--keep", "0:1", "--remove", "3:5"]
        )
        assert manifest_from_args(args).segments == [TimeRange(3.0, 5.0)]

    def test_transcribe_default_output(self):
        args = build_parser().parse_args(["render", "in.mp4", "--op", "transcribe"])
        assert manifest_from_args(args).output == Path("in.srt")


class TestMain:
    @patch("clipflow.cli.process")
    def test_success(self, mock_process, capsys):
        mock_process.return_value = RenderResult(
            output_path=Path("out.mp4"), operation=OperationKind.CUT, segments_kept=2
        )
        main(["render", "in.mp4", "-o", "out.mp4", "--keep", "2:4"])
        assert "Done! Output: out.mp4" in capsys.readouterr().out

    @patch("clipflow.cli.process")
    def test_typed_error_exit(self, mock_process, capsys):
        mock_process.side_effect = ProbeError("ffprobe failed (rc=1)", diagnostics="moov atom not found")
        with pytest.raises(SystemExit) as exc_info:
            main(["render", "in.mp4"])
        assert exc_info.value.code == 1
        err = capsys.readouterr().err
        assert "error[probe]" in err
        assert "moov atom not found" in err

    def test_trim_without_range(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["render", "in.mp4", "--op", "trim"])
        assert exc_info.value.code == 1
        assert "exactly one range" in capsys.readouterr().err
