"""Tests for extraction script generation."""

import shutil
import subprocess

import pytest

from clip_batch import generate_script, parse
from clip_batch.config import ScriptDialect, ScriptSettings
from clip_batch.models.clip import Bounded, ErrorClip, ReadyClip, Unbounded
from clip_batch.script.generator import (
    ScriptGenerator,
    build_output_name,
    compute_window,
    default_script_name,
    sanitize_description,
)


def make_clip(source="a.mp4", start=10.0, end=20.0, description="", clip_id="clip-1"):
    return ReadyClip(
        id=clip_id,
        source_file_name=source,
        start_time_str="raw",
        end_time_str="raw",
        start_seconds=start,
        end=Bounded(end) if end is not None else Unbounded(),
        description=description,
    )


def make_error(source="bad.mp4"):
    return ErrorClip(
        id="clip-9",
        source_file_name=source,
        start_time_str="garbage",
        end_time_str="garbage",
        error_message="Invalid range format: garbage",
    )


def command_lines(script: str) -> list[str]:
    return [line for line in script.splitlines() if line.startswith("ffmpeg ")]


class TestComputeWindow:
    """Tests for padded window calculation."""

    def test_padding_both_sides(self):
        """Test padding widens start and end."""
        window = compute_window(make_clip(start=10, end=20), padding=1)

        assert window.start == 9
        assert window.end == 21
        assert window.duration == 12
        assert window.bounded is True

    def test_start_clamped_at_zero(self):
        """Test padding never seeks before 0."""
        window = compute_window(make_clip(start=1, end=5), padding=3)

        assert window.start == 0
        assert window.duration == 8

    def test_no_padding(self):
        """Test zero padding keeps the raw range."""
        window = compute_window(make_clip(start=10, end=20), padding=0)
        assert (window.start, window.duration) == (10, 10)

    def test_unbounded(self):
        """Test full-source clips have no end or duration."""
        window = compute_window(make_clip(start=5, end=None), padding=2)

        assert window.start == 3
        assert window.end is None
        assert window.duration is None
        assert window.bounded is False


class TestOutputNames:
    """Tests for output file naming."""

    def test_sanitize_illegal_characters(self):
        """Test each illegal character becomes an underscore."""
        assert sanitize_description('a\\b/c:d*e?f"g<h>i|j') == "a_b_c_d_e_f_g_h_i_j"

    def test_sanitize_whitespace_runs(self):
        """Test whitespace runs collapse to one underscore."""
        assert sanitize_description("hero  walks \t in") == "hero_walks_in"

    def test_sanitize_trims_edges(self):
        """Test surrounding whitespace is dropped, not turned into underscores."""
        assert sanitize_description(" desc ") == "desc"

    def test_sanitize_keeps_unicode(self):
        """Test non-ASCII descriptions survive."""
        assert sanitize_description("男主 闭眼") == "男主_闭眼"

    def test_build_output_name(self):
        """Test sequence, source and description are joined."""
        clip = make_clip(source="ep01.mp4", description="opening scene")
        assert build_output_name(3, clip) == "003_ep01.mp4_opening_scene.mp4"

    def test_build_output_name_without_description(self):
        """Test empty descriptions add no trailing underscore."""
        assert build_output_name(1, make_clip()) == "001_a.mp4.mp4"

    def test_build_output_name_custom_extension(self):
        """Test the output extension is configurable."""
        assert build_output_name(12, make_clip(), ".mkv") == "012_a.mp4.mkv"

    def test_default_script_name(self):
        """Test suggested script names."""
        assert default_script_name(4) == "run_cuts_4_clips.bat"
        assert default_script_name(4, ScriptDialect.SHELL) == "run_cuts_4_clips.sh"


class TestBatchScript:
    """Tests for the default Windows batch dialect."""

    def test_single_clip_window(self):
        """Test seek and duration for a padded clip."""
        script = generate_script([make_clip(start=10, end=20)], padding=1)
        lines = command_lines(script)

        assert len(lines) == 1
        assert "-ss 9.000" in lines[0]
        assert "-t 12.000" in lines[0]
        assert "001" in lines[0]
        assert "a.mp4" in lines[0]

    def test_command_shape(self):
        """Test the full ffmpeg invocation."""
        script = generate_script([make_clip(description="opening shot")], padding=1)

        assert command_lines(script)[0] == (
            'ffmpeg -hide_banner -loglevel error -ss 9.000 -i "a.mp4" -t 12.000 '
            '-c copy "output\\001_a.mp4_opening_shot.mp4"'
        )

    def test_announce_line(self):
        """Test each command is preceded by an echo."""
        lines = generate_script([make_clip()], padding=0).splitlines()
        index = next(i for i, line in enumerate(lines) if line.startswith("ffmpeg "))

        assert lines[index - 1] == 'echo Processing: "output\\001_a.mp4.mp4"'

    def test_unbounded_clip(self):
        """Test full-source clips have no duration argument."""
        script = generate_script([make_clip(start=5, end=None)], padding=2)
        line = command_lines(script)[0]

        assert "-ss 3.000" in line
        assert "-t " not in line

    def test_error_clips_excluded(self):
        """Test error rows never become commands."""
        clips = [make_error(), make_clip(source="ok.mp4")]
        script = generate_script(clips, padding=0)
        lines = command_lines(script)

        assert len(lines) == 1
        assert "bad.mp4" not in script
        assert "001_ok.mp4" in lines[0]

    def test_sequence_numbers_in_order(self):
        """Test clips are numbered from 1 in source order."""
        clips = [make_clip(source=f"{name}.mp4") for name in ("x", "y", "z")]
        lines = command_lines(generate_script(clips, padding=0))

        assert "001_x.mp4" in lines[0]
        assert "002_y.mp4" in lines[1]
        assert "003_z.mp4" in lines[2]

    def test_crlf_line_endings(self):
        """Test batch scripts use CRLF."""
        script = generate_script([make_clip()], padding=0)

        assert script.endswith("\r\n")
        assert "\n" not in script.replace("\r\n", "")

    def test_preamble_and_postamble(self):
        """Test tool check, directory creation and completion message."""
        lines = generate_script([make_clip()], padding=0).split("\r\n")

        assert lines[0] == "@echo off"
        assert "where ffmpeg >nul 2>nul" in lines
        assert "    exit /b 1" in lines
        assert 'if not exist "output" mkdir "output"' in lines
        assert lines[-2] == "pause"
        assert any(line.startswith("echo All done!") for line in lines)

    def test_percent_signs_escaped(self):
        """Test percent signs in file names are doubled for cmd.exe."""
        line = command_lines(generate_script([make_clip(source="100%.mp4")], padding=0))[0]
        assert '-i "100%%.mp4"' in line

    def test_empty_clip_list(self):
        """Test a script with no clips still has preamble and postamble."""
        script = generate_script([], padding=0)

        assert command_lines(script) == []
        assert script.startswith("@echo off")

    def test_fractional_times(self):
        """Test times are written with three decimals."""
        line = command_lines(generate_script([make_clip(start=1.25, end=2.5)], padding=0.1))[0]

        assert "-ss 1.150" in line
        assert "-t 1.450" in line

    def test_deterministic(self):
        """Test identical input gives identical scripts."""
        clips = parse("| File | Time | Desc |\n| a.mp4 | 00:10 - 00:20 | x |").clips
        assert generate_script(clips, 0.5) == generate_script(clips, 0.5)


class TestShellScript:
    """Tests for the POSIX shell dialect."""

    @pytest.fixture
    def generator(self):
        return ScriptGenerator(ScriptSettings(dialect=ScriptDialect.SHELL))

    def test_line_endings(self, generator):
        """Test shell scripts use LF only."""
        script = generator.generate([make_clip()], padding=0)

        assert "\r" not in script
        assert script.startswith("#!/bin/sh\n")

    def test_command_uses_forward_slashes(self, generator):
        """Test output paths use the POSIX separator."""
        line = command_lines(generator.generate([make_clip()], padding=1))[0]
        assert line.endswith('"output/001_a.mp4.mp4"')

    def test_tool_check(self, generator):
        """Test the script aborts when ffmpeg is missing."""
        script = generator.generate([make_clip()], padding=0)

        assert "if ! command -v ffmpeg >/dev/null 2>&1; then" in script
        assert "    exit 1" in script
        assert 'mkdir -p "output"' in script

    def test_no_errexit(self, generator):
        """Test a failing clip doesn't abort the rest of the script."""
        script = generator.generate([make_clip()], padding=0)
        assert "set -e" not in script.splitlines()

    @pytest.mark.skipif(shutil.which("sh") is None, reason="needs a POSIX shell")
    def test_clips_run_independently(self, tmp_path):
        """Test every clip runs even when the tool fails on each one."""
        generator = ScriptGenerator(ScriptSettings(dialect=ScriptDialect.SHELL, tool="false"))
        clips = [make_clip(source="a.mp4"), make_clip(source="b.mp4")]
        script_path = tmp_path / "cut.sh"
        script_path.write_text(generator.generate(clips, padding=0), encoding="utf-8")

        result = subprocess.run(
            ["sh", str(script_path)], cwd=tmp_path, capture_output=True, text=True
        )

        assert result.returncode == 0
        assert "001_a.mp4.mp4" in result.stdout
        assert "002_b.mp4.mp4" in result.stdout
        assert "All done!" in result.stdout

    def test_shell_quoting(self, generator):
        """Test shell metacharacters in names are escaped."""
        line = command_lines(generator.generate([make_clip(source='$HOME "cut".mp4')], padding=0))[0]
        assert '-i "\\$HOME \\"cut\\".mp4"' in line


class TestScriptGenerator:
    """Tests for ScriptGenerator settings handling."""

    def test_configured_padding_used_by_default(self):
        """Test padding falls back to the settings."""
        generator = ScriptGenerator(ScriptSettings(padding=2))
        line = command_lines(generator.generate([make_clip(start=10, end=20)]))[0]
        assert "-ss 8.000" in line

    def test_generate_script_uses_configured_padding(self):
        """Test generate_script falls back to the settings padding."""
        script = generate_script([make_clip(start=10, end=20)], settings=ScriptSettings(padding=2))
        line = command_lines(script)[0]

        assert "-ss 8.000" in line
        assert "-t 14.000" in line

    @pytest.mark.parametrize("padding", [float("inf"), float("-inf"), float("nan")])
    def test_non_finite_padding_treated_as_zero(self, padding):
        """Test infinite and NaN padding never reach the script."""
        script = generate_script([make_clip(start=10, end=20)], padding=padding)
        line = command_lines(script)[0]

        assert "-ss 10.000" in line
        assert "-t 10.000" in line
        assert "inf" not in script
        assert "nan" not in script

    def test_negative_padding_treated_as_zero(self):
        """Test negative padding doesn't raise."""
        line = command_lines(generate_script([make_clip(start=10, end=20)], padding=-3))[0]

        assert "-ss 10.000" in line
        assert "-t 10.000" in line

    def test_custom_output_settings(self):
        """Test output directory, extension and tool are configurable."""
        settings = ScriptSettings(output_dir="cuts", output_extension="mkv", tool="ffmpeg6")
        script = ScriptGenerator(settings).generate([make_clip()], padding=0)

        assert "where ffmpeg6" in script
        assert 'ffmpeg6 -hide_banner' in script
        assert '"cuts\\001_a.mp4.mkv"' in script

    def test_plan(self):
        """Test plan numbers only ready clips."""
        generator = ScriptGenerator()
        plan = generator.plan([make_error(), make_clip(), make_clip(end=None)], padding=1)

        assert [c.index for c in plan] == [1, 2]
        assert plan[0].window.duration == 12
        assert plan[1].window.end is None
        assert generator.output_path(plan[0]) == "output\\001_a.mp4.mp4"
