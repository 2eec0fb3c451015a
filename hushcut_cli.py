#!/usr/bin/env python3

"""
hushcut_cli.py

Cut a video down to the spans ffmpeg's silencedetect finds, and optionally
boost the result toward 0 dB peak.
"""

# Standard Library
import argparse
import os
import sys

# local repo modules
from hushcutlib.core import config
from hushcutlib.core import utils
from hushcutlib.core.pipeline import HushcutPipeline

#============================================

def build_parser(variant: str) -> argparse.ArgumentParser:
	"""
	Build the argument parser for a variant.

	Numeric options use the forgiving coercion in utils, so a malformed
	number reads as zero instead of failing.

	Args:
		variant: 'trim' or 'normalize'.

	Returns:
		argparse.ArgumentParser: Configured parser.
	"""
	config.check_variant(variant)
	defaults = config.VARIANT_DEFAULTS[variant]
	description = "Stitch together the silent spans of a video with ffmpeg."
	if defaults['normalize_gain']:
		description += " The result is boosted by 75% of its peak headroom."
	parser = argparse.ArgumentParser(description=description)
	parser.add_argument('-i', '--input', dest='input_path', default=None,
		help=f"input media file (default {config.DEFAULT_INPUT_PATH})")
	parser.add_argument('-o', '--output', dest='output_path', default=None,
		help=f"output media file (default {config.DEFAULT_OUTPUT_PATH})")
	parser.add_argument('-t', '--min-silence', dest='min_silence',
		type=utils.coerce_float, default=None,
		help=f"minimum silence seconds (default {defaults['min_silence']})")
	parser.add_argument('-n', '--noise-db', dest='noise_db',
		type=utils.coerce_int, default=None,
		help=f"noise floor in negative dB (default {defaults['noise_db']})")
	if defaults['windowed']:
		parser.add_argument('-s', '--start', dest='start_offset',
			type=utils.coerce_float, default=None,
			help="seconds to skip before analysis")
		parser.add_argument('-l', '--length', dest='duration',
			type=utils.coerce_float, default=None,
			help="seconds of input to analyse")
	parser.add_argument('-c', '--config', dest='config_file', default=None,
		help="YAML config file; written with defaults if missing")
	parser.add_argument('-k', '--keep', dest='keep', choices=config.KEEP_MODES,
		default=None,
		help="keep the detected silence (default) or the sound between it")
	parser.add_argument('--cleanup-on-failure', dest='cleanup_on_failure',
		action='store_true', default=None,
		help="remove the temporary file when a later stage fails")
	parser.add_argument('--dry-run', dest='dry_run', action='store_true',
		default=None, help="detect and print the filter graph, do not render")
	parser.add_argument('-q', '--quiet', dest='quiet', action='store_true',
		help="only print ffmpeg output and errors")
	parser.set_defaults(quiet=False)
	return parser

#============================================

def parse_args(variant: str, argv: list = None) -> argparse.Namespace:
	"""
	Parse command-line arguments.
	"""
	parser = build_parser(variant)
	args = parser.parse_args(argv)
	return args

#============================================

def resolve_settings(variant: str, args: argparse.Namespace):
	"""
	Merge defaults, the optional config file and flags into Settings.

	Args:
		variant: 'trim' or 'normalize'.
		args: Parsed arguments.

	Returns:
		Settings: Immutable settings record.
	"""
	file_config = None
	if args.config_file is not None:
		if not os.path.exists(args.config_file):
			config.write_config_file(args.config_file, config.default_config(variant))
			utils.info(f"Wrote default config: {args.config_file}")
		file_config = config.load_config(args.config_file)
	overrides = {
		'input_path': args.input_path,
		'output_path': args.output_path,
		'min_silence': args.min_silence,
		'noise_db': args.noise_db,
		'start_offset': getattr(args, 'start_offset', None),
		'duration': getattr(args, 'duration', None),
		'keep': args.keep,
		'cleanup_on_failure': args.cleanup_on_failure,
		'dry_run': args.dry_run,
	}
	return config.build_settings(variant, file_config, overrides)

#============================================

def run(variant: str, argv: list = None) -> int:
	args = parse_args(variant, argv)
	utils.set_quiet_mode(args.quiet)
	settings = resolve_settings(variant, args)
	pipeline = HushcutPipeline(settings)
	return pipeline.run()

#============================================

def main() -> None:
	sys.exit(run('trim'))

#============================================

def main_normalize() -> None:
	sys.exit(run('normalize'))


if __name__ == '__main__':
	main()
