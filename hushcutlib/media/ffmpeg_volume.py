#!/usr/bin/env python3

import math
import re
import shlex
from hushcutlib.core import utils
from hushcutlib.core.errors import CommandFailedError
from hushcutlib.core.errors import VolumeNotDetectedError

#============================================

MAX_VOLUME_PATTERN = re.compile(r"max_volume: -(\d+\.\d+) dB")
HEADROOM_FRACTION = 0.75

#============================================

def build_volumedetect_command(settings, media_path: str) -> list:
	cmd = [settings.ffmpeg_bin, "-nostats"]
	cmd += ["-i", media_path]
	cmd += ["-af", "volumedetect", "-vn"]
	cmd += ["-f", "null", "-"]
	return cmd

#============================================

def parse_max_volume(lines: list):
	"""
	Find the peak level below 0 dB reported by volumedetect.

	Args:
		lines: ffmpeg output lines.

	Returns:
		float | None: Peak magnitude in dB, or None without a match.
	"""
	for line in lines:
		match = MAX_VOLUME_PATTERN.search(line)
		if match is not None:
			return float(match.group(1))
	return None

#============================================

def compute_gain_db(peak_db: float) -> int:
	return int(math.floor(peak_db * HEADROOM_FRACTION))

#============================================

def build_gain_command(settings, media_path: str, gain_db: int) -> list:
	cmd = [settings.ffmpeg_bin]
	cmd += ["-i", media_path]
	cmd += ["-af", f"volume=+{gain_db}dB"]
	cmd += ["-c:v", "copy"]
	cmd.append(settings.output_path)
	return cmd

#============================================

def detect_gain(settings, media_path: str) -> int:
	"""
	Measure the peak volume of a file and return the gain to apply.

	Args:
		settings: Resolved Settings record.
		media_path: File to measure.

	Returns:
		int: Gain in dB, never negative.
	"""
	cmd = build_volumedetect_command(settings, media_path)
	proc = utils.run_process(cmd, capture_output=True)
	if proc.returncode != 0:
		raise CommandFailedError(shlex.join(cmd), proc.returncode, proc.stdout)
	peak_db = parse_max_volume(utils.output_lines(proc))
	if peak_db is None:
		raise VolumeNotDetectedError(media_path)
	gain_db = compute_gain_db(peak_db)
	utils.info(f"Peak volume -{peak_db} dB, applying +{gain_db} dB")
	return gain_db

#============================================

def normalize_gain(settings) -> int:
	"""
	Boost the stitched temporary file into the final output.

	The gain pass is the last command and runs attached to the terminal.
	The temporary file is removed only when it succeeds.

	Args:
		settings: Resolved Settings record.

	Returns:
		int: Exit status of the gain pass.
	"""
	gain_db = detect_gain(settings, settings.temp_path)
	cmd = build_gain_command(settings, settings.temp_path, gain_db)
	proc = utils.run_process(cmd, capture_output=False)
	if proc.returncode == 0:
		utils.remove_file(settings.temp_path)
	return proc.returncode
