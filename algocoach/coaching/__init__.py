#!/usr/bin/env python3
"""
Trigger-driven coaching for algorithm practice.

A guidance script (trainer.yaml) lists coaching steps:
- intro / pre_prompt / after_success: shown as-is at fixed moments
- on_run: feedback after each test run, gated by a trigger expression
- hint: shown on request, gated by a trigger expression
- on_request: answers free-text questions by keyword
"""

from .state import (
    StepType,
    Difficulty,
    TriggerContext,
    GuidanceStep,
    GuidanceScript,
    SessionState,
    TestResult,
    ExecutionResult,
    ScriptInfo,
    ValidationResult,
)
from .errors import (
    CoachingError,
    ScriptLoadError,
    ScriptValidationError,
    HarnessError,
)
from .triggers import evaluate_trigger, check_trigger
from .validator import validate_script, validate_or_raise, check_triggers
from .session import CoachingSession
from .loader import ScriptLoader
from .engine import CoachingEngine
from .generator import ScriptGenerator, to_yaml
from .harness import run_tests

__all__ = [
    'StepType',
    'Difficulty',
    'TriggerContext',
    'GuidanceStep',
    'GuidanceScript',
    'SessionState',
    'TestResult',
    'ExecutionResult',
    'ScriptInfo',
    'ValidationResult',
    'CoachingError',
    'ScriptLoadError',
    'ScriptValidationError',
    'HarnessError',
    'evaluate_trigger',
    'check_trigger',
    'validate_script',
    'validate_or_raise',
    'check_triggers',
    'CoachingSession',
    'ScriptLoader',
    'CoachingEngine',
    'ScriptGenerator',
    'to_yaml',
    'run_tests',
]
