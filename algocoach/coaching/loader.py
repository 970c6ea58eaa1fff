#!/usr/bin/env python3
"""
ScriptLoader - finds and parses trainer scripts on disk.

A problem directory holds its guidance script as trainer.yaml (or
trainer.yml / trainer.json). The loader only reads and parses; structural
checks are left to the validator.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Union

import yaml

from .errors import ScriptLoadError
from .state import GuidanceScript
from .validator import validate_or_raise

logger = logging.getLogger(__name__)

DEFAULT_SCRIPT_FILENAMES = ('trainer.yaml', 'trainer.yml', 'trainer.json')

PathLike = Union[str, Path]


def _format_for(path: Path) -> str:
    return 'json' if path.suffix.lower() == '.json' else 'yaml'


class ScriptLoader:
    """Locates and parses guidance scripts"""

    def __init__(self, filenames: Sequence[str] = DEFAULT_SCRIPT_FILENAMES):
        self.filenames = tuple(filenames)

    def find_script_path(self, path: PathLike) -> Optional[Path]:
        """
        Resolve a script file from a path.

        Args:
            path: A script file, or a problem directory containing one

        Returns:
            Path to the script, or None when nothing exists there
        """
        path = Path(path).expanduser()

        if path.is_file():
            return path

        if path.is_dir():
            for name in self.filenames:
                candidate = path / name
                if candidate.is_file():
                    return candidate

        return None

    def parse_script_text(self, text: str, fmt: str = 'yaml') -> Dict[str, Any]:
        """Parse script text into a raw mapping (not yet validated)"""
        try:
            if fmt == 'json':
                parsed = json.loads(text)
            else:
                parsed = yaml.safe_load(text)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ScriptLoadError(
                f"Failed to parse {fmt.upper()} content",
                {'error': str(e)},
            ) from e

        if not isinstance(parsed, dict):
            raise ScriptLoadError(
                f"Parsed {fmt.upper()} is not an object",
                {'type': type(parsed).__name__},
            )

        return parsed

    def read_script(self, path: PathLike) -> Optional[Dict[str, Any]]:
        """Read and parse a script; None when no script exists at path"""
        script_path = self.find_script_path(path)
        if script_path is None:
            logger.debug("No guidance script found at %s", path)
            return None

        logger.debug("Reading guidance script %s", script_path)

        try:
            text = script_path.read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as e:
            raise ScriptLoadError(
                "Failed to read guidance script file",
                {'file_path': str(script_path), 'error': str(e)},
            ) from e

        try:
            return self.parse_script_text(text, _format_for(script_path))
        except ScriptLoadError as e:
            raise ScriptLoadError(
                e.message,
                {'file_path': str(script_path), **e.context},
            ) from e

    def load(self, path: PathLike) -> Optional[GuidanceScript]:
        """
        Read, parse and validate a script.

        Returns None when no script exists. Raises ScriptLoadError for
        unreadable or malformed files and ScriptValidationError when the
        content is structurally invalid.
        """
        raw = self.read_script(path)
        if raw is None:
            return None
        return validate_or_raise(raw)
