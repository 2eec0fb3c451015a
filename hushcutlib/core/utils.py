#!/usr/bin/env python3

import math
import os
import re
import shlex
import shutil
import subprocess
import sys
import tempfile
from rich.console import Console
from rich.text import Text

#============================================

NORD_COLORS = {
	'command': "#ECEFF4",
	'flags': "#81A1C1",
	'numbers': "#B48EAD",
	'paths': "#A3BE8C",
	'strings': "#EBCB8B",
}

COMMAND_STYLES = [
	(re.compile(r"--?[A-Za-z0-9][A-Za-z0-9_:-]*"), NORD_COLORS['flags']),
	(re.compile(r"\b\d+\.\d+\b"), NORD_COLORS['numbers']),
	(re.compile(r"\b\d+\b(?!\.\d)"), NORD_COLORS['numbers']),
	(re.compile(r"'[^']*'|\"[^\"]*\""), NORD_COLORS['strings']),
	(re.compile(r"(?:/|~|\./|\.\./)[^\s'\"`]+"), NORD_COLORS['paths']),
]

NUMERIC_PREFIX = re.compile(r"^\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")

_QUIET_MODE = False
_CONSOLE = Console(highlight=False)

#============================================

def set_quiet_mode(enabled: bool) -> None:
	global _QUIET_MODE
	_QUIET_MODE = bool(enabled)

#============================================

def info(message: str) -> None:
	if _QUIET_MODE:
		return
	print(message)

#============================================

def highlight_command(command: str) -> Text:
	text = Text(command, style=f"bold {NORD_COLORS['command']}")
	for pattern, style in COMMAND_STYLES:
		for match in pattern.finditer(command):
			text.stylize(style, match.start(), match.end())
	return text

#============================================

def show_command(cmd: list) -> str:
	showcmd = shlex.join(cmd)
	if _QUIET_MODE:
		return showcmd
	if _CONSOLE.is_terminal:
		line = Text("CMD: '")
		line.append_text(highlight_command(showcmd))
		line.append("'")
		_CONSOLE.print(line, soft_wrap=True)
	else:
		print(f"CMD: '{showcmd}'")
	return showcmd

#============================================

def run_process(cmd: list, capture_output: bool = True) -> subprocess.CompletedProcess:
	"""
	Run a command and wait for it.

	With capture_output, stderr is merged into stdout so callers see the
	lines in the order the tool wrote them. Without it the child inherits
	the terminal. The return code is never checked here.

	Args:
		cmd: Command list to execute.
		capture_output: Capture merged output as text when True.

	Returns:
		subprocess.CompletedProcess: The completed process.
	"""
	show_command(cmd)
	if capture_output:
		proc = subprocess.run(cmd, stdout=subprocess.PIPE,
			stderr=subprocess.STDOUT, text=True, errors='replace')
	else:
		sys.stdout.flush()
		proc = subprocess.run(cmd)
	return proc

#============================================

def output_lines(proc: subprocess.CompletedProcess) -> list:
	if not proc.stdout:
		return []
	return proc.stdout.splitlines()

#============================================

def check_dependency(cmd_name: str) -> None:
	"""
	Ensure a required external command exists.

	Args:
		cmd_name: Command to locate.
	"""
	if shutil.which(cmd_name) is None:
		raise RuntimeError(f"missing dependency: {cmd_name}")
	return

#============================================

def coerce_float(raw_value) -> float:
	"""
	Read a float from its leading numeric prefix.

	Anything without a numeric prefix reads as 0.0, so the CLI never
	rejects a malformed number.

	Args:
		raw_value: Value from the command line or config file.

	Returns:
		float: Parsed value.
	"""
	if raw_value is None:
		return 0.0
	if isinstance(raw_value, bool):
		return float(raw_value)
	if isinstance(raw_value, (int, float)):
		return float(raw_value)
	match = NUMERIC_PREFIX.match(str(raw_value))
	if match is None:
		return 0.0
	value = float(match.group(0))
	if not math.isfinite(value):
		return 0.0
	return value

#============================================

def coerce_int(raw_value) -> int:
	"""
	Read an int from its leading numeric prefix, truncating toward zero.

	Args:
		raw_value: Value from the command line or config file.

	Returns:
		int: Parsed value.
	"""
	return int(coerce_float(raw_value))

#============================================

def output_extension(output_path: str, default: str = 'mkv') -> str:
	extension = os.path.splitext(output_path)[1].lstrip('.')
	if extension == '':
		return default
	return extension

#============================================

def make_temp_path(extension: str) -> str:
	"""
	Create a unique temporary file and return its path.

	Args:
		extension: File extension without the leading dot.

	Returns:
		str: Temporary file path.
	"""
	temp_handle, temp_path = tempfile.mkstemp(prefix="hushcut-",
		suffix=f".{extension}")
	os.close(temp_handle)
	return temp_path

#============================================

def remove_file(filepath: str) -> None:
	if filepath and os.path.exists(filepath):
		os.remove(filepath)
	return
