#!/usr/bin/env python3

import re
import shlex
from hushcutlib.core import utils
from hushcutlib.core.errors import CommandFailedError

#============================================

SILENCE_PATTERN = re.compile(r"silence_(start|end): (\d+\.\d+)")
DURATION_PATTERN = re.compile(r"Duration: (\d+):(\d{2}):(\d{2}(?:\.\d+)?)")

#============================================

def window_args(start_offset: float = None, duration: float = None) -> list:
	args = []
	if start_offset is not None:
		args += ["-ss", str(start_offset)]
	if duration is not None:
		args += ["-t", str(duration)]
	return args

#============================================

def build_detect_command(settings) -> list:
	"""
	Build the silencedetect analysis command.

	Args:
		settings: Resolved Settings record.

	Returns:
		list: Command list.
	"""
	cmd = [settings.ffmpeg_bin, "-nostats"]
	cmd += window_args(settings.start_offset, settings.duration)
	cmd += ["-i", settings.input_path]
	cmd += ["-af", f"silencedetect=d={settings.min_silence}:n=-{settings.noise_db}dB"]
	cmd += ["-f", "null", "-"]
	return cmd

#============================================

def scan_silence_log(lines: list) -> dict:
	"""
	Pair silence_start and silence_end markers from ffmpeg output.

	A start overwrites any start that is still open. An end with no open
	start is dropped.

	Args:
		lines: ffmpeg output lines.

	Returns:
		dict: 'intervals' as ordered (start, end) tuples, and 'open_start'
			for a start that never closed.
	"""
	intervals = []
	start = None
	for line in lines:
		match = SILENCE_PATTERN.search(line)
		if match is None:
			continue
		if match.group(1) == 'start':
			start = float(match.group(2))
		elif start is not None:
			intervals.append((start, float(match.group(2))))
			start = None
	return {
		'intervals': intervals,
		'open_start': start,
	}

#============================================

def parse_silence_log(lines: list) -> list:
	return scan_silence_log(lines)['intervals']

#============================================

def parse_media_duration(lines: list):
	"""
	Find the input duration ffmpeg prints in its stream header.

	Args:
		lines: ffmpeg output lines.

	Returns:
		float | None: Duration in seconds, or None if absent.
	"""
	for line in lines:
		match = DURATION_PATTERN.search(line)
		if match is None:
			continue
		hours = int(match.group(1))
		minutes = int(match.group(2))
		seconds = float(match.group(3))
		return hours * 3600.0 + minutes * 60.0 + seconds
	return None

#============================================

def window_end(media_duration: float, start_offset: float = None,
	duration: float = None) -> float:
	"""
	Length of the analysed window, in window-relative seconds.

	Args:
		media_duration: Full input duration in seconds.
		start_offset: Seek offset applied before the input.
		duration: Window length limit.

	Returns:
		float: Window end, never negative.
	"""
	end = media_duration
	if start_offset is not None:
		end -= start_offset
	if duration is not None:
		end = min(end, duration)
	return max(end, 0.0)

#============================================

def invert_intervals(intervals: list, end: float, open_start: float = None) -> list:
	"""
	Return the spans between silence intervals within [0, end].

	An open trailing start counts as silence through the end.

	Args:
		intervals: Ordered silence intervals.
		end: Window end in seconds.
		open_start: Start of silence that never closed.

	Returns:
		list: Ordered (start, end) sound spans.
	"""
	silences = list(intervals)
	if open_start is not None:
		silences.append((open_start, end))
	spans = []
	cursor = 0.0
	for silence_start, silence_end in silences:
		silence_start = min(max(silence_start, 0.0), end)
		if silence_start > cursor:
			spans.append((cursor, silence_start))
		cursor = max(cursor, min(silence_end, end))
	if cursor < end:
		spans.append((cursor, end))
	return spans

#============================================

def find_silent_gaps(settings) -> list:
	"""
	Run silencedetect and return the spans to keep.

	Args:
		settings: Resolved Settings record.

	Returns:
		list: Ordered (start, end) spans; empty when no silence was found.
	"""
	cmd = build_detect_command(settings)
	proc = utils.run_process(cmd, capture_output=True)
	if proc.returncode != 0:
		raise CommandFailedError(shlex.join(cmd), proc.returncode,
			proc.stdout)
	lines = utils.output_lines(proc)
	scan = scan_silence_log(lines)
	intervals = scan['intervals']
	utils.info(f"Found {len(intervals)} gap(s) of silence")
	if settings.keep == 'silence':
		return intervals
	if len(intervals) == 0 and scan['open_start'] is None:
		return intervals
	media_duration = parse_media_duration(lines)
	if media_duration is None:
		raise RuntimeError(f"could not read input duration of {settings.input_path}")
	end = window_end(media_duration, settings.start_offset, settings.duration)
	spans = invert_intervals(intervals, end, scan['open_start'])
	utils.info(f"Keeping {len(spans)} span(s) of sound")
	return spans
