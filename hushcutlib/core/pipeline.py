#!/usr/bin/env python3

import shlex
from hushcutlib.core import utils
from hushcutlib.core.errors import CommandFailedError
from hushcutlib.core.errors import VolumeNotDetectedError
from hushcutlib.media import ffmpeg_detect
from hushcutlib.media import ffmpeg_render
from hushcutlib.media import ffmpeg_volume

#============================================

class HushcutPipeline():
	"""
	Detect, stitch and optionally normalize, in that order.

	run() returns the exit status for the whole run: 0 when there is
	nothing to cut, the status of the first failing ffmpeg call, 1 when
	the peak volume cannot be read, otherwise the status of the last call.
	"""
	def __init__(self, settings):
		self.settings = settings
		self.spans = None
		self.rendered = False

	#============================
	def run(self) -> int:
		failed = True
		try:
			utils.check_dependency(self.settings.ffmpeg_bin)
			status = self._run_stages()
			failed = status != 0
			return status
		except CommandFailedError as error:
			print(error.output.rstrip('\n'))
			return error.returncode
		except VolumeNotDetectedError as error:
			print(str(error))
			return 1
		finally:
			self._cleanup(failed)

	#============================
	def _run_stages(self) -> int:
		self.spans = ffmpeg_detect.find_silent_gaps(self.settings)
		if len(self.spans) == 0:
			return 0
		if self.settings.dry_run:
			self._print_plan()
			return 0
		self.rendered = True
		status = ffmpeg_render.concat_silent_gaps(self.settings, self.spans)
		if not self.settings.normalize_gain or status != 0:
			return status
		return ffmpeg_volume.normalize_gain(self.settings)

	#============================
	def _print_plan(self) -> None:
		print(ffmpeg_render.build_filter_complex(self.spans))
		cmd = ffmpeg_render.build_render_command(self.settings, self.spans)
		print(f"dry run: {shlex.join(cmd)}")

	#============================
	def _cleanup(self, failed: bool) -> None:
		temp_path = self.settings.temp_path
		if temp_path is None:
			return
		# the placeholder from mkstemp is empty until the render stage runs
		if not self.rendered:
			utils.remove_file(temp_path)
			return
		if failed and self.settings.cleanup_on_failure:
			utils.remove_file(temp_path)
