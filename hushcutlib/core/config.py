#!/usr/bin/env python3

import dataclasses
import os
import yaml
from hushcutlib.core import utils

#============================================

DEFAULT_INPUT_PATH = 'input.mp4'
DEFAULT_OUTPUT_PATH = 'output.mkv'
DEFAULT_FFMPEG_BIN = 'ffmpeg'

VARIANT_DEFAULTS = {
	'trim': {
		'min_silence': 0.5,
		'noise_db': 40,
		'windowed': False,
		'normalize_gain': False,
	},
	'normalize': {
		'min_silence': 0.7,
		'noise_db': 37,
		'windowed': True,
		'normalize_gain': True,
	},
}

KEEP_MODES = ('silence', 'sound')

#============================================

@dataclasses.dataclass(frozen=True)
class Settings:
	"""Resolved settings for one run, shared read-only by every stage."""
	variant: str
	input_path: str = DEFAULT_INPUT_PATH
	output_path: str = DEFAULT_OUTPUT_PATH
	temp_path: str = None
	min_silence: float = 0.5
	noise_db: int = 40
	start_offset: float = None
	duration: float = None
	keep: str = 'silence'
	cleanup_on_failure: bool = False
	dry_run: bool = False
	ffmpeg_bin: str = DEFAULT_FFMPEG_BIN

	@property
	def normalize_gain(self) -> bool:
		return VARIANT_DEFAULTS[self.variant]['normalize_gain']

	@property
	def render_path(self) -> str:
		if self.normalize_gain:
			return self.temp_path
		return self.output_path

#============================================

def check_variant(variant: str) -> None:
	if variant not in VARIANT_DEFAULTS:
		raise RuntimeError(f"unknown variant: {variant}")

#============================================

def default_config(variant: str) -> dict:
	"""
	Build the default config dictionary for a variant.

	Args:
		variant: 'trim' or 'normalize'.

	Returns:
		dict: Default configuration values.
	"""
	check_variant(variant)
	defaults = VARIANT_DEFAULTS[variant]
	settings = {
		'min_silence': defaults['min_silence'],
		'noise_db': defaults['noise_db'],
		'keep': 'silence',
		'cleanup_on_failure': False,
		'ffmpeg_bin': DEFAULT_FFMPEG_BIN,
	}
	if defaults['windowed']:
		settings['start_offset'] = None
		settings['duration'] = None
	return {
		'hushcut': 1,
		'settings': settings,
	}

#============================================

def _yaml_value(value) -> str:
	if value is None:
		return "null"
	if isinstance(value, bool):
		return str(value).lower()
	return str(value)

#============================================

def _yaml_scalar(value) -> str:
	text = yaml.safe_dump(str(value), default_style='"', width=float('inf'))
	return text.splitlines()[0]

#============================================

def build_config_text(config: dict) -> str:
	"""
	Build YAML text for the config file.

	Args:
		config: Config dictionary.

	Returns:
		str: YAML content.
	"""
	settings = config.get('settings', {})
	lines = []
	lines.append("hushcut: 1")
	lines.append("settings:")
	lines.append("  # shortest silence to report, in seconds")
	lines.append(f"  min_silence: {_yaml_value(settings.get('min_silence'))}")
	lines.append("  # noise floor, read as negative dB")
	lines.append(f"  noise_db: {_yaml_value(settings.get('noise_db'))}")
	if 'start_offset' in settings or 'duration' in settings:
		lines.append("  # optional analysis window, in seconds")
		lines.append(f"  start_offset: {_yaml_value(settings.get('start_offset'))}")
		lines.append(f"  duration: {_yaml_value(settings.get('duration'))}")
	lines.append("  # silence: keep detected silence, sound: keep everything else")
	lines.append(f"  keep: {settings.get('keep', 'silence')}")
	lines.append(
		f"  cleanup_on_failure: {_yaml_value(bool(settings.get('cleanup_on_failure', False)))}"
	)
	lines.append(f"  ffmpeg_bin: {_yaml_scalar(settings.get('ffmpeg_bin', DEFAULT_FFMPEG_BIN))}")
	lines.append("")
	return "\n".join(lines)

#============================================

def write_config_file(config_path: str, config: dict) -> None:
	"""
	Write a config file to disk.

	Args:
		config_path: Output file path.
		config: Config dictionary.
	"""
	text = build_config_text(config)
	os.makedirs(os.path.dirname(config_path) or '.', exist_ok=True)
	with open(config_path, 'w', encoding='utf-8') as handle:
		handle.write(text)
	return

#============================================

def load_config(config_path: str) -> dict:
	"""
	Load a config file from disk.

	Args:
		config_path: Config file path.

	Returns:
		dict: Parsed config dictionary.
	"""
	with open(config_path, 'r', encoding='utf-8') as handle:
		data = yaml.safe_load(handle)
	if not isinstance(data, dict):
		raise RuntimeError("config file must be a mapping")
	if data.get('hushcut') != 1:
		raise RuntimeError("config file must set hushcut: 1")
	settings = data.get('settings', {})
	if settings is None:
		data['settings'] = {}
	elif not isinstance(settings, dict):
		raise RuntimeError("config settings must be a mapping")
	return data

#============================================

def _optional_seconds(value):
	if value is None:
		return None
	return utils.coerce_float(value)

#============================================

def build_settings(variant: str, config: dict = None, overrides: dict = None) -> Settings:
	"""
	Resolve variant defaults, config file values and CLI overrides.

	Later layers win. None in overrides means the flag was not given.

	Args:
		variant: 'trim' or 'normalize'.
		config: Parsed config file, or None.
		overrides: Values from the command line.

	Returns:
		Settings: Immutable settings record.
	"""
	merged = dict(default_config(variant)['settings'])
	merged['input_path'] = DEFAULT_INPUT_PATH
	merged['output_path'] = DEFAULT_OUTPUT_PATH
	merged['dry_run'] = False
	if config is not None:
		for key, value in config.get('settings', {}).items():
			merged[key] = value
	for key, value in (overrides or {}).items():
		if value is not None:
			merged[key] = value
	keep = str(merged.get('keep', 'silence')).lower()
	if keep not in KEEP_MODES:
		raise RuntimeError(f"keep must be one of: {', '.join(KEEP_MODES)}")
	start_offset = None
	duration = None
	temp_path = None
	if VARIANT_DEFAULTS[variant]['windowed']:
		start_offset = _optional_seconds(merged.get('start_offset'))
		duration = _optional_seconds(merged.get('duration'))
	output_path = str(merged['output_path'])
	if VARIANT_DEFAULTS[variant]['normalize_gain']:
		temp_path = utils.make_temp_path(utils.output_extension(output_path))
	settings = Settings(
		variant=variant,
		input_path=str(merged['input_path']),
		output_path=output_path,
		temp_path=temp_path,
		min_silence=utils.coerce_float(merged.get('min_silence')),
		noise_db=utils.coerce_int(merged.get('noise_db')),
		start_offset=start_offset,
		duration=duration,
		keep=keep,
		cleanup_on_failure=bool(merged.get('cleanup_on_failure', False)),
		dry_run=bool(merged.get('dry_run', False)),
		ffmpeg_bin=str(merged.get('ffmpeg_bin') or DEFAULT_FFMPEG_BIN),
	)
	return settings
