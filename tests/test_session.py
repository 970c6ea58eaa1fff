#!/usr/bin/env python3
"""
Tests for CoachingSession state tracking.
"""

import time

from algocoach.coaching.session import CoachingSession
from algocoach.coaching.state import ExecutionResult, TriggerContext


class TestCoachingSession:
    """Tests for session mutations"""

    def test_initial_state(self):
        """Test a fresh session"""
        state = CoachingSession('two-sum').get_state()
        assert state.problem_id == 'two-sum'
        assert state.attempts == 0
        assert state.passed is False
        assert state.last_output == ''
        assert state.last_error == ''
        assert state.code_history == []
        assert state.hints_viewed == 0

    def test_record_attempt(self):
        """Test attempts and history grow together"""
        session = CoachingSession('p')
        session.record_attempt('v1')
        session.record_attempt('v2')

        state = session.get_state()
        assert state.attempts == 2
        assert state.code_history == ['v1', 'v2']
        assert len(state.code_history) == state.attempts

    def test_record_execution_overwrites_output(self):
        """Test only the latest output is kept"""
        session = CoachingSession('p')
        session.record_execution(ExecutionResult(stdout='one', stderr='err'))
        session.record_execution(ExecutionResult(stdout='two', stderr=''))

        state = session.get_state()
        assert state.last_output == 'two'
        assert state.last_error == ''
        assert state.passed is False

    def test_passed_is_sticky(self):
        """Test a later failing run does not clear passed"""
        session = CoachingSession('p')
        session.record_execution(ExecutionResult(passed=True))
        session.record_execution(ExecutionResult(passed=False, stderr='boom'))
        assert session.get_state().passed is True

    def test_mark_passed_idempotent(self):
        """Test marking passed twice"""
        session = CoachingSession('p')
        session.mark_passed()
        session.mark_passed()
        assert session.get_state().passed is True

    def test_increment_hints_viewed(self):
        """Test hint counter"""
        session = CoachingSession('p')
        session.increment_hints_viewed()
        session.increment_hints_viewed()
        assert session.get_state().hints_viewed == 2

    def test_reset(self):
        """Test reset clears everything and restarts the clock"""
        session = CoachingSession('old')
        session.record_attempt('code')
        session.record_execution(ExecutionResult(stdout='o', stderr='e', passed=True))
        session.increment_hints_viewed()
        started = session.get_state().started_at

        time.sleep(0.01)
        session.reset('new')

        state = session.get_state()
        assert state.problem_id == 'new'
        assert state.attempts == 0
        assert state.passed is False
        assert state.last_output == ''
        assert state.last_error == ''
        assert state.code_history == []
        assert state.hints_viewed == 0
        assert state.started_at > started


class TestSnapshots:
    """Tests for defensive copies"""

    def test_get_state_is_a_copy(self):
        """Test mutating a snapshot leaves the session untouched"""
        session = CoachingSession('p')
        session.record_attempt('v1')

        snapshot = session.get_state()
        snapshot.code_history.append('sneaky')
        snapshot.attempts = 99

        state = session.get_state()
        assert state.code_history == ['v1']
        assert state.attempts == 1

    def test_snapshot_does_not_track_later_changes(self):
        """Test earlier snapshots stay frozen in time"""
        session = CoachingSession('p')
        before = session.get_state()
        session.record_attempt('v1')
        assert before.attempts == 0
        assert before.code_history == []

    def test_trigger_context(self):
        """Test the context reflects the latest run and given code"""
        session = CoachingSession('p')
        session.record_attempt('old')
        session.record_execution(ExecutionResult(stdout='out', stderr='err'))

        context = session.get_trigger_context('new code')
        assert context == TriggerContext(
            code='new code', stdout='out', stderr='err', passed=False, attempts=1
        )
