#!/usr/bin/env python3
"""
CoachingSession - tracks one learner's progress on one problem.
Owns the SessionState and is the only thing that mutates it.
"""

from dataclasses import replace

from .state import ExecutionResult, SessionState, TriggerContext


class CoachingSession:
    """Mutable per-problem learner state with snapshot access"""

    def __init__(self, problem_id: str = ''):
        self._state = SessionState(problem_id=problem_id)

    @property
    def problem_id(self) -> str:
        return self._state.problem_id

    def record_attempt(self, code: str):
        """Count an attempt and remember the code that was run"""
        self._state.attempts += 1
        self._state.code_history.append(code)

    def record_execution(self, result: ExecutionResult):
        """Store the latest output; a passing run marks the problem solved"""
        self._state.last_output = result.stdout
        self._state.last_error = result.stderr
        if result.passed:
            self._state.passed = True

    def mark_passed(self):
        self._state.passed = True

    def increment_hints_viewed(self):
        self._state.hints_viewed += 1

    def reset(self, problem_id: str):
        """Start over on a (possibly different) problem"""
        self._state = SessionState(problem_id=problem_id)

    def get_state(self) -> SessionState:
        """
        Snapshot of the current state.

        Mutating the returned object (including its code history) does not
        affect the session.
        """
        return replace(self._state, code_history=list(self._state.code_history))

    def get_trigger_context(self, code: str) -> TriggerContext:
        """Build the read-only view that trigger expressions evaluate against"""
        return TriggerContext(
            code=code,
            stdout=self._state.last_output,
            stderr=self._state.last_error,
            passed=self._state.passed,
            attempts=self._state.attempts,
        )
