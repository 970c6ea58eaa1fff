#!/usr/bin/env python3
"""
Data model for the coaching system.
Guidance scripts, their steps, session state and execution results.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class StepType(Enum):
    """When a guidance step is shown"""
    INTRO = 'intro'                  # Problem start
    PRE_PROMPT = 'pre_prompt'        # Before the learner starts coding
    ON_RUN = 'on_run'                # After each execution, gated by trigger
    AFTER_SUCCESS = 'after_success'  # Once all tests pass
    ON_REQUEST = 'on_request'        # Explicit help request, keyword matched
    HINT = 'hint'                    # Hint request, gated by trigger


class Difficulty(Enum):
    """Problem difficulty levels"""
    EASY = 'easy'
    MEDIUM = 'medium'
    HARD = 'hard'


UNTRIGGERED_STEP_TYPES = frozenset({
    StepType.INTRO,
    StepType.PRE_PROMPT,
    StepType.AFTER_SUCCESS,
})

TRIGGER_REQUIRED_STEP_TYPES = frozenset({StepType.HINT})

SUPPORTED_LANGUAGES = (
    'typescript',
    'javascript',
    'python',
    'java',
    'cpp',
    'rust',
    'go',
)


@dataclass(frozen=True)
class TriggerContext:
    """Snapshot of learner state that trigger expressions can see"""
    code: str
    stdout: str
    stderr: str
    passed: bool
    attempts: int

    def as_dict(self) -> Dict[str, Any]:
        """The only names a trigger can resolve"""
        return {
            'code': self.code,
            'stdout': self.stdout,
            'stderr': self.stderr,
            'passed': self.passed,
            'attempts': self.attempts,
        }


@dataclass(frozen=True)
class GuidanceStep:
    """One unit of coaching content"""
    type: StepType
    content: str                              # Template with {{name}} placeholders
    trigger: Optional[str] = None             # Boolean DSL expression
    keywords: Optional[Tuple[str, ...]] = None  # on_request only

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> 'GuidanceStep':
        """Build a step from a validated mapping"""
        keywords = raw.get('keywords')
        return cls(
            type=StepType(raw['type']),
            content=raw['content'],
            trigger=raw.get('trigger'),
            keywords=tuple(keywords) if keywords is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {'type': self.type.value, 'content': self.content}
        if self.trigger is not None:
            data['trigger'] = self.trigger
        if self.keywords is not None:
            data['keywords'] = list(self.keywords)
        return data


@dataclass(frozen=True)
class GuidanceScript:
    """A complete, validated guidance script for one problem"""
    id: str
    title: str
    difficulty: Difficulty
    tags: Tuple[str, ...]
    language: str
    steps: Tuple[GuidanceStep, ...]

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> 'GuidanceScript':
        """Build a script from a mapping that already passed validation"""
        return cls(
            id=raw['id'],
            title=raw['title'],
            difficulty=Difficulty(raw['difficulty']),
            tags=tuple(raw['tags']),
            language=raw['language'],
            steps=tuple(GuidanceStep.from_dict(step) for step in raw['steps']),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'title': self.title,
            'difficulty': self.difficulty.value,
            'tags': list(self.tags),
            'language': self.language,
            'steps': [step.to_dict() for step in self.steps],
        }

    def steps_of_type(self, step_type: StepType) -> List[GuidanceStep]:
        """Steps of one type, in declaration order"""
        return [step for step in self.steps if step.type == step_type]


@dataclass
class SessionState:
    """Mutable per-problem learner state"""
    problem_id: str
    attempts: int = 0
    passed: bool = False
    last_output: str = ''
    last_error: str = ''
    code_history: List[str] = field(default_factory=list)  # One entry per attempt
    hints_viewed: int = 0
    started_at: datetime = field(default_factory=datetime.now)


@dataclass
class TestResult:
    """Outcome of a single test case"""
    __test__ = False  # not a pytest class

    name: str
    passed: bool
    input: Any = None
    expected: Any = None
    actual: Any = None
    error: Optional[str] = None
    execution_time: Optional[float] = None  # milliseconds


@dataclass
class ExecutionResult:
    """What the execution harness reports after running learner code"""
    stdout: str = ''
    stderr: str = ''
    passed: bool = False
    exit_code: int = 0
    test_results: Optional[List[TestResult]] = None


@dataclass(frozen=True)
class ScriptInfo:
    """Metadata summary of the loaded script"""
    id: str
    title: str
    difficulty: str
    tags: List[str]
    language: str
    step_count: int


@dataclass
class ValidationResult:
    """Aggregated validation outcome"""
    valid: bool
    errors: List[str] = field(default_factory=list)

    @classmethod
    def from_errors(cls, errors: List[str]) -> 'ValidationResult':
        return cls(valid=not errors, errors=list(errors))
