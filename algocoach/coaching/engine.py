#!/usr/bin/env python3
"""
CoachingEngine - decides which guidance step to show next.

Holds at most one validated GuidanceScript and a CoachingSession. Every
query filters the script's steps by type, keeps declaration order, and
returns the first eligible step rendered with {{title}}, {{difficulty}}
and {{attempts}} filled in.
"""

import logging
from typing import Any, List, Mapping, Optional, Union

from .loader import PathLike, ScriptLoader
from .session import CoachingSession
from .state import (
    ExecutionResult,
    GuidanceScript,
    GuidanceStep,
    ScriptInfo,
    StepType,
    TriggerContext,
)
from .triggers import evaluate_trigger
from .validator import validate_or_raise

logger = logging.getLogger(__name__)


class CoachingEngine:
    """Selects and renders guidance for the current learner state"""

    def __init__(self, session: CoachingSession, loader: Optional[ScriptLoader] = None):
        self._session = session
        self._loader = loader or ScriptLoader()
        self._script: Optional[GuidanceScript] = None

    @property
    def session(self) -> CoachingSession:
        return self._session

    @property
    def script(self) -> Optional[GuidanceScript]:
        return self._script

    def is_loaded(self) -> bool:
        return self._script is not None

    # =========================================================================
    # Script lifecycle
    # =========================================================================

    def load_script(self, path: PathLike) -> bool:
        """
        Load and validate the guidance script for a problem.

        Args:
            path: Problem directory or script file

        Returns:
            True if a script was loaded, False if none exists at path

        Raises:
            ScriptLoadError: the file could not be read or parsed
            ScriptValidationError: the script is structurally invalid
        """
        script = self._loader.load(path)
        if script is None:
            logger.info("No guidance script at %s", path)
            self._script = None
            return False

        self._script = script
        logger.info("Loaded guidance script '%s' (%d steps)", script.id, len(script.steps))
        return True

    def use_script(self, script: Union[GuidanceScript, Mapping[str, Any], None]) -> bool:
        """Install an in-memory script; raw mappings are validated first"""
        if script is None:
            self._script = None
            return False

        if not isinstance(script, GuidanceScript):
            script = validate_or_raise(script)

        self._script = script
        logger.info("Using guidance script '%s' (%d steps)", script.id, len(script.steps))
        return True

    def clear_script(self):
        """Return to the unloaded state; the session is left alone"""
        self._script = None

    def get_script_info(self) -> Optional[ScriptInfo]:
        if self._script is None:
            return None

        return ScriptInfo(
            id=self._script.id,
            title=self._script.title,
            difficulty=self._script.difficulty.value,
            tags=list(self._script.tags),
            language=self._script.language,
            step_count=len(self._script.steps),
        )

    # =========================================================================
    # Guidance queries
    # =========================================================================

    def get_introduction(self) -> Optional[str]:
        return self._first_untriggered(StepType.INTRO)

    def get_pre_prompt(self) -> Optional[str]:
        return self._first_untriggered(StepType.PRE_PROMPT)

    def get_success_message(self) -> Optional[str]:
        return self._first_untriggered(StepType.AFTER_SUCCESS)

    def get_hint(self, code: str) -> Optional[str]:
        """
        First hint whose trigger holds for the current state.

        Counts as a viewed hint only when one is returned.
        """
        if self._script is None:
            return None

        context = self._session.get_trigger_context(code)
        step = self._find_matching_step(self._script.steps_of_type(StepType.HINT), context)
        if step is None:
            return None

        self._session.increment_hints_viewed()
        return self._render(step.content)

    def handle_request(self, query: str) -> Optional[str]:
        """Answer a free-text help request by keyword match"""
        if self._script is None:
            return None

        lower_query = query.lower()
        for step in self._script.steps_of_type(StepType.ON_REQUEST):
            if any(keyword.lower() in lower_query for keyword in step.keywords or ()):
                return self._render(step.content)

        return None

    def process_execution(self, code: str, result: ExecutionResult) -> Optional[str]:
        """
        Record a run of the learner's code and pick on_run feedback.

        The attempt and its output are recorded before any trigger is
        evaluated, whether or not a script is loaded.
        """
        self._session.record_attempt(code)
        self._session.record_execution(result)

        if self._script is None:
            return None

        context = self._session.get_trigger_context(code)
        step = self._find_matching_step(self._script.steps_of_type(StepType.ON_RUN), context)
        if step is None:
            return None
        return self._render(step.content)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _first_untriggered(self, step_type: StepType) -> Optional[str]:
        if self._script is None:
            return None

        steps = self._script.steps_of_type(step_type)
        if not steps:
            return None
        return self._render(steps[0].content)

    def _find_matching_step(
        self,
        steps: List[GuidanceStep],
        context: TriggerContext
    ) -> Optional[GuidanceStep]:
        """First step with no trigger or a trigger that holds"""
        for step in steps:
            if step.trigger is None:
                return step
            if evaluate_trigger(step.trigger, context):
                return step
            logger.debug("Trigger did not match: %s", step.trigger)

        return None

    def _render(self, content: str) -> str:
        """Fill in the template placeholders; unknown ones are left as is"""
        state = self._session.get_state()
        return (
            content
            .replace('{{title}}', self._script.title)
            .replace('{{difficulty}}', self._script.difficulty.value)
            .replace('{{attempts}}', str(state.attempts))
        )
