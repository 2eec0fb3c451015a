#!/usr/bin/env python3

import shlex
from hushcutlib.core import utils
from hushcutlib.core.errors import CommandFailedError
from hushcutlib.media.ffmpeg_detect import window_args

#============================================

OUTPUT_LABEL = '[out]'

#============================================

def build_filter_complex(spans: list) -> str:
	"""
	Build the trim and concat filter graph for a list of spans.

	Each span becomes a video trim and an audio atrim, both rebased to
	zero, labeled [vN] and [aN]. A single concat joins them in order.

	Args:
		spans: Ordered (start, end) tuples in seconds.

	Returns:
		str: filter_complex text.
	"""
	if len(spans) == 0:
		raise RuntimeError("no spans to concatenate")
	trims = []
	concats = []
	for index, (start, end) in enumerate(spans):
		trims.append(
			f"[0:v]trim={start}:{end},setpts=PTS-STARTPTS[v{index}]; "
			f"[0:a]atrim={start}:{end},asetpts=PTS-STARTPTS[a{index}]; "
		)
		concats.append(f"[v{index}][a{index}]")
	filter_complex = " ".join(trims)
	filter_complex += "".join(concats)
	filter_complex += f"concat=v=1:a=1:n={len(spans)}{OUTPUT_LABEL}"
	return filter_complex

#============================================

def build_render_command(settings, spans: list) -> list:
	"""
	Build the render command for the spans.

	The detection window is applied again so span timestamps line up.
	Rendering to the temporary file always overwrites.

	Args:
		settings: Resolved Settings record.
		spans: Ordered (start, end) tuples.

	Returns:
		list: Command list.
	"""
	cmd = [settings.ffmpeg_bin]
	if settings.normalize_gain:
		cmd.append("-y")
	cmd += window_args(settings.start_offset, settings.duration)
	cmd += ["-i", settings.input_path]
	cmd += ["-filter_complex", build_filter_complex(spans)]
	cmd += ["-map", OUTPUT_LABEL]
	cmd.append(settings.render_path)
	return cmd

#============================================

def concat_silent_gaps(settings, spans: list) -> int:
	"""
	Render the spans into one file.

	For the trim variant this is the last command, so it runs attached to
	the terminal and its status is returned as is. Otherwise output is
	captured and a failure raises.

	Args:
		settings: Resolved Settings record.
		spans: Ordered (start, end) tuples.

	Returns:
		int: ffmpeg exit status.
	"""
	cmd = build_render_command(settings, spans)
	if not settings.normalize_gain:
		proc = utils.run_process(cmd, capture_output=False)
		return proc.returncode
	proc = utils.run_process(cmd, capture_output=True)
	if proc.returncode != 0:
		raise CommandFailedError(shlex.join(cmd), proc.returncode, proc.stdout)
	return proc.returncode
