#!/usr/bin/env python3

"""
Pytest coverage for stage sequencing and exit status handling.
"""

# Standard Library
import os
import sys

# PIP3 modules
import pytest

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

# tests helpers
TESTS_DIR = os.path.abspath(os.path.dirname(__file__))
if TESTS_DIR not in sys.path:
	sys.path.insert(0, TESTS_DIR)
from fake_ffmpeg import FakeRunner
from fake_ffmpeg import silence_lines

# local repo modules
import hushcut_cli
from hushcutlib.core import config
from hushcutlib.core import utils
from hushcutlib.core.pipeline import HushcutPipeline

#============================================

@pytest.fixture(autouse=True)
def ffmpeg_on_path(monkeypatch):
	monkeypatch.setattr(utils, 'check_dependency', lambda cmd_name: None)
	utils.set_quiet_mode(True)
	yield
	utils.set_quiet_mode(False)

#============================================

@pytest.fixture
def temp_media(tmp_path):
	temp_file = tmp_path / "hushcut-test.mkv"
	temp_file.write_bytes(b"")
	return str(temp_file)

#============================================

def _install(monkeypatch, results: dict) -> FakeRunner:
	runner = FakeRunner(results)
	monkeypatch.setattr(utils, 'run_process', runner)
	return runner

#============================================

def _normalize_settings(temp_media: str, **kwargs) -> config.Settings:
	return config.Settings(variant='normalize', output_path='final.mkv',
		temp_path=temp_media, min_silence=0.7, noise_db=37, **kwargs)

#============================================

def test_zero_intervals_skips_render(monkeypatch) -> None:
	runner = _install(monkeypatch, {'detect': (0, ["Stream #0:1: Audio"])})
	status = HushcutPipeline(config.Settings(variant='trim')).run()
	assert status == 0
	assert runner.kinds() == ['detect']

#============================================

def test_detect_failure_relays_status(monkeypatch, capsys) -> None:
	runner = _install(monkeypatch,
		{'detect': (183, ["input.mp4: No such file or directory"])})
	status = HushcutPipeline(config.Settings(variant='trim')).run()
	assert status == 183
	assert runner.kinds() == ['detect']
	assert "No such file or directory" in capsys.readouterr().out

#============================================

def test_trim_variant_renders_and_relays_final_status(monkeypatch) -> None:
	runner = _install(monkeypatch, {
		'detect': (0, silence_lines([(1.0, 2.0), (5.0, 7.5)])),
		'render': (5, []),
	})
	settings = config.Settings(variant='trim', output_path='out.mkv')
	status = HushcutPipeline(settings).run()
	assert status == 5
	assert runner.kinds() == ['detect', 'render']
	render = runner.calls[1]
	assert render['capture_output'] is False
	graph = render['cmd'][render['cmd'].index('-filter_complex') + 1]
	assert "trim=1.0:2.0" in graph
	assert "trim=5.0:7.5" in graph
	assert graph.endswith("concat=v=1:a=1:n=2[out]")

#============================================

def test_keep_sound_renders_complement(monkeypatch) -> None:
	runner = _install(monkeypatch, {
		'detect': (0, silence_lines([(1.0, 2.0), (5.0, 7.5)])),
	})
	settings = config.Settings(variant='trim', keep='sound')
	assert HushcutPipeline(settings).run() == 0
	cmd = runner.command('render')
	graph = cmd[cmd.index('-filter_complex') + 1]
	assert "trim=0.0:1.0" in graph
	assert "trim=2.0:5.0" in graph
	assert "trim=7.5:10.0" in graph
	assert "n=3[out]" in graph

#============================================

def test_dry_run_prints_graph_without_render(monkeypatch, capsys) -> None:
	runner = _install(monkeypatch, {
		'detect': (0, silence_lines([(1.0, 2.0)])),
	})
	settings = config.Settings(variant='trim', dry_run=True)
	assert HushcutPipeline(settings).run() == 0
	assert runner.kinds() == ['detect']
	assert "concat=v=1:a=1:n=1[out]" in capsys.readouterr().out

#============================================

def test_normalize_success_removes_temp(monkeypatch, temp_media) -> None:
	runner = _install(monkeypatch, {
		'detect': (0, silence_lines([(1.0, 2.0)])),
		'volumedetect': (0, ["[Parsed_volumedetect_0 @ 0x1] max_volume: -12.40 dB"]),
		'gain': (0, []),
	})
	status = HushcutPipeline(_normalize_settings(temp_media)).run()
	assert status == 0
	assert runner.kinds() == ['detect', 'render', 'volumedetect', 'gain']
	assert runner.command('render')[-1] == temp_media
	assert 'volume=+9dB' in runner.command('gain')
	assert runner.calls[3]['capture_output'] is False
	assert not os.path.exists(temp_media)

#============================================

def test_normalize_gain_failure_keeps_temp(monkeypatch, temp_media) -> None:
	_install(monkeypatch, {
		'detect': (0, silence_lines([(1.0, 2.0)])),
		'volumedetect': (0, ["max_volume: -3.00 dB"]),
		'gain': (1, []),
	})
	status = HushcutPipeline(_normalize_settings(temp_media)).run()
	assert status == 1
	assert os.path.exists(temp_media)

#============================================

def test_volume_not_detected_exits_one(monkeypatch, temp_media, capsys) -> None:
	runner = _install(monkeypatch, {
		'detect': (0, silence_lines([(1.0, 2.0)])),
		'volumedetect': (0, ["mean_volume: -20.0 dB"]),
	})
	status = HushcutPipeline(_normalize_settings(temp_media)).run()
	assert status == 1
	assert 'gain' not in runner.kinds()
	assert f"Failed to detect volume of {temp_media}" in capsys.readouterr().out
	assert os.path.exists(temp_media)

#============================================

def test_cleanup_on_failure_removes_temp(monkeypatch, temp_media) -> None:
	_install(monkeypatch, {
		'detect': (0, silence_lines([(1.0, 2.0)])),
		'volumedetect': (0, []),
	})
	settings = _normalize_settings(temp_media, cleanup_on_failure=True)
	assert HushcutPipeline(settings).run() == 1
	assert not os.path.exists(temp_media)

#============================================

def test_render_failure_stops_before_gain(monkeypatch, temp_media) -> None:
	runner = _install(monkeypatch, {
		'detect': (0, silence_lines([(1.0, 2.0)])),
		'render': (69, ["Error initializing filter 'trim'"]),
	})
	status = HushcutPipeline(_normalize_settings(temp_media)).run()
	assert status == 69
	assert runner.kinds() == ['detect', 'render']
	assert runner.calls[1]['capture_output'] is True

#============================================

def test_unrendered_temp_placeholder_is_removed(monkeypatch, temp_media) -> None:
	_install(monkeypatch, {'detect': (0, [])})
	assert HushcutPipeline(_normalize_settings(temp_media)).run() == 0
	assert not os.path.exists(temp_media)

#============================================

def test_help_exits_zero_without_running(monkeypatch, capsys) -> None:
	runner = _install(monkeypatch, {})
	with pytest.raises(SystemExit) as excinfo:
		hushcut_cli.run('trim', ['-h'])
	assert excinfo.value.code == 0
	assert runner.calls == []
	assert "usage:" in capsys.readouterr().out

#============================================

def test_cli_run_relays_detect_status(monkeypatch) -> None:
	_install(monkeypatch, {'detect': (2, ["bad option"])})
	assert hushcut_cli.run('trim', ['-q', '-i', 'a.mp4', '-o', 'b.mkv']) == 2

#============================================

def test_keep_sound_with_only_open_start_renders_leading_sound(monkeypatch) -> None:
	lines = [
		"  Duration: 00:00:10.00, start: 0.000000, bitrate: 512 kb/s",
		"[silencedetect @ 0x55d0] silence_start: 6.000",
	]
	runner = _install(monkeypatch, {'detect': (0, lines)})
	settings = config.Settings(variant='trim', keep='sound')
	assert HushcutPipeline(settings).run() == 0
	assert runner.kinds() == ['detect', 'render']
	cmd = runner.command('render')
	graph = cmd[cmd.index('-filter_complex') + 1]
	assert "trim=0.0:6.0" in graph
	assert "n=1[out]" in graph

#============================================

def test_keep_silence_ignores_open_start(monkeypatch) -> None:
	runner = _install(monkeypatch,
		{'detect': (0, ["[silencedetect @ 0x55d0] silence_start: 6.000"])})
	assert HushcutPipeline(config.Settings(variant='trim')).run() == 0
	assert runner.kinds() == ['detect']

#============================================

def test_reports_gap_count(monkeypatch, capsys) -> None:
	_install(monkeypatch, {
		'detect': (0, silence_lines([(1.0, 2.0), (5.0, 7.5)])),
	})
	utils.set_quiet_mode(False)
	settings = config.Settings(variant='trim', dry_run=True)
	assert HushcutPipeline(settings).run() == 0
	assert "Found 2 gap(s) of silence" in capsys.readouterr().out

#============================================

def test_config_temp_path_never_deleted(monkeypatch, tmp_path) -> None:
	user_file = tmp_path / "my_edit.mkv"
	user_file.write_text("precious")
	config_path = tmp_path / "hushcut.yaml"
	config_path.write_text(
		"hushcut: 1\n"
		"settings:\n"
		f"  temp_path: \"{user_file}\"\n"
	)
	runner = _install(monkeypatch, {'detect': (0, [])})
	status = hushcut_cli.run('normalize', ['-q', '-c', str(config_path)])
	assert status == 0
	assert runner.kinds() == ['detect']
	assert user_file.read_text() == "precious"
