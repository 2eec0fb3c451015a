#!/usr/bin/env python3

#============================================

class CommandFailedError(RuntimeError):
	"""An external command exited with a non-zero status."""
	def __init__(self, showcmd: str, returncode: int, output: str = ''):
		super().__init__(f"command failed with status {returncode}: {showcmd}")
		self.showcmd = showcmd
		self.returncode = returncode
		self.output = output or ''

#============================================

class VolumeNotDetectedError(RuntimeError):
	"""volumedetect output had no usable max_volume line."""
	def __init__(self, media_path: str):
		super().__init__(f"Failed to detect volume of {media_path}")
		self.media_path = media_path
