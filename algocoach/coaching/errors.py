#!/usr/bin/env python3
"""
Error types for the coaching system.

Script problems (load and validation) are surfaced to callers. Trigger
errors never leave the evaluator; they are turned into a non-match.
"""

from enum import Enum
from typing import Any, Dict, List, Optional


class CoachingError(Exception):
    """Base class for errors surfaced to callers"""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}


class ScriptLoadError(CoachingError):
    """Script file could not be read or parsed"""


class ScriptValidationError(CoachingError):
    """Script failed structural validation; carries every violation"""

    def __init__(self, errors: List[str], context: Optional[Dict[str, Any]] = None):
        self.errors = list(errors)
        summary = f"Guidance script is invalid ({len(self.errors)} error(s))"
        super().__init__(summary, context)

    def __str__(self) -> str:
        lines = [self.message]
        lines.extend(f"  - {error}" for error in self.errors)
        return '\n'.join(lines)


class HarnessError(CoachingError):
    """The test command could not be started"""


class TriggerErrorKind(Enum):
    """Every way a trigger expression can fail"""
    SYNTAX = 'syntax'
    UNKNOWN_IDENTIFIER = 'unknown_identifier'
    UNKNOWN_MEMBER = 'unknown_member'
    BAD_ARGUMENT = 'bad_argument'
    INVALID_REGEX = 'invalid_regex'
    NOT_A_STRING = 'not_a_string'


class TriggerError(Exception):
    """Internal evaluator failure, always converted to False"""

    def __init__(self, kind: TriggerErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message
