#!/usr/bin/env python3
"""
Guidance script validator.

Checks a candidate script (usually freshly parsed YAML) before the engine
trusts it. Every violation is collected with a path-qualified message so a
script author can fix everything in one pass.
"""

from typing import Any, List, Mapping

from .errors import ScriptValidationError
from .state import (
    Difficulty,
    GuidanceScript,
    StepType,
    SUPPORTED_LANGUAGES,
    TRIGGER_REQUIRED_STEP_TYPES,
    UNTRIGGERED_STEP_TYPES,
    ValidationResult,
)
from .triggers import check_trigger

VALID_STEP_TYPES = [step_type.value for step_type in StepType]
VALID_DIFFICULTIES = [difficulty.value for difficulty in Difficulty]

REQUIRED_FIELDS = ('id', 'title', 'difficulty', 'tags', 'language')


def _check_string(value: Any, field_name: str, errors: List[str], allow_empty: bool = False):
    if not isinstance(value, str):
        errors.append(f"{field_name} must be a string")
    elif not allow_empty and not value.strip():
        errors.append(f"{field_name} cannot be empty")


def _check_string_list(value: Any, field_name: str, item_name: str, errors: List[str]):
    if not isinstance(value, list):
        errors.append(f"{field_name} must be an array")
        return
    for index, item in enumerate(value):
        item_errors: List[str] = []
        _check_string(item, item_name, item_errors)
        errors.extend(f"{field_name}[{index}]: {error}" for error in item_errors)


def _check_choice(value: Any, field_name: str, choices, errors: List[str]):
    if not isinstance(value, str) or value not in choices:
        errors.append(f"{field_name} must be one of: {', '.join(choices)}")


def _validate_metadata(script: Mapping[str, Any]) -> List[str]:
    """Validate id, title, difficulty, tags and language"""
    errors: List[str] = []

    for field_name in REQUIRED_FIELDS:
        if field_name not in script:
            errors.append(f"{field_name} is required")

    if 'id' in script:
        _check_string(script['id'], 'id', errors)
    if 'title' in script:
        _check_string(script['title'], 'title', errors)
    if 'difficulty' in script:
        _check_choice(script['difficulty'], 'difficulty', VALID_DIFFICULTIES, errors)
    if 'tags' in script:
        _check_string_list(script['tags'], 'tags', 'tag', errors)
    if 'language' in script:
        _check_choice(script['language'], 'language', SUPPORTED_LANGUAGES, errors)

    return errors


def _validate_step(step: Any, index: int) -> List[str]:
    """Validate one step and its trigger/keyword constraints"""
    prefix = f"steps[{index}]"

    if not isinstance(step, dict):
        return [f"{prefix} must be an object"]

    errors: List[str] = []

    step_type = None
    if 'type' not in step:
        errors.append(f"{prefix}.type is required")
    elif not isinstance(step['type'], str):
        errors.append(f"{prefix}.type must be a string")
    elif step['type'] not in VALID_STEP_TYPES:
        errors.append(f"{prefix}.type must be one of: {', '.join(VALID_STEP_TYPES)}")
    else:
        step_type = StepType(step['type'])

    if 'content' not in step:
        errors.append(f"{prefix}.content is required")
    else:
        _check_string(step['content'], f"{prefix}.content", errors)

    has_trigger = step.get('trigger') is not None
    if has_trigger:
        _check_string(step['trigger'], f"{prefix}.trigger", errors)
        if step_type in UNTRIGGERED_STEP_TYPES:
            errors.append(f"{prefix}: '{step_type.value}' steps must not have triggers (they are always shown)")

    if step_type in TRIGGER_REQUIRED_STEP_TYPES:
        if not has_trigger or (isinstance(step['trigger'], str) and not step['trigger'].strip()):
            errors.append(f"{prefix}: '{step_type.value}' steps must have a trigger")

    has_keywords = step.get('keywords') is not None
    if has_keywords:
        if step_type != StepType.ON_REQUEST:
            errors.append(f"{prefix}: 'keywords' are only valid for 'on_request' steps")
        _check_string_list(step['keywords'], f"{prefix}.keywords", 'keyword', errors)

    if step_type == StepType.ON_REQUEST:
        if not has_keywords or (isinstance(step['keywords'], list) and not step['keywords']):
            errors.append(f"{prefix}: 'on_request' steps must have keywords")

    return errors


def _validate_steps(script: Mapping[str, Any]) -> List[str]:
    if 'steps' not in script:
        return ['steps is required']

    steps = script['steps']
    if not isinstance(steps, list):
        return ['steps must be an array']
    if not steps:
        return ['steps must have at least one step']

    errors: List[str] = []
    for index, step in enumerate(steps):
        errors.extend(_validate_step(step, index))
    return errors


def validate_script(candidate: Any) -> ValidationResult:
    """
    Validate a candidate guidance script.

    Args:
        candidate: Parsed script, normally a dict straight from YAML/JSON

    Returns:
        ValidationResult with every violation found
    """
    if not isinstance(candidate, dict):
        return ValidationResult.from_errors(['script must be an object'])

    errors = _validate_metadata(candidate) + _validate_steps(candidate)
    return ValidationResult.from_errors(errors)


def validate_or_raise(candidate: Any) -> GuidanceScript:
    """Validate and build a GuidanceScript, raising ScriptValidationError"""
    result = validate_script(candidate)
    if not result.valid:
        raise ScriptValidationError(result.errors)
    return GuidanceScript.from_dict(candidate)


def check_triggers(script: GuidanceScript) -> List[str]:
    """
    Find triggers that can never fire.

    These are warnings, not validation errors: a broken trigger only
    disables its own step at runtime.
    """
    warnings = []
    for index, step in enumerate(script.steps):
        if step.trigger is None:
            continue
        problem = check_trigger(step.trigger)
        if problem:
            warnings.append(f"steps[{index}].trigger: {problem}")
    return warnings
