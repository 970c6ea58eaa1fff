#!/usr/bin/env python3
"""
Tests for the solution file watcher.
"""

from unittest.mock import MagicMock, patch

import pytest

from algocoach.coaching import CoachingEngine, CoachingSession, ExecutionResult, HarnessError
from algocoach.coaching.file_watcher import SolutionReviewer, SolutionWatcher


SCRIPT = {
    'id': 'fizzbuzz',
    'title': 'FizzBuzz',
    'difficulty': 'easy',
    'tags': [],
    'language': 'python',
    'steps': [
        {'type': 'on_run', 'trigger': 'stderr.includes("AssertionError")', 'content': 'Check multiples of 15 first.'},
        {'type': 'after_success', 'content': 'Done in {{attempts}}!'},
    ],
}


@pytest.fixture
def engine():
    engine = CoachingEngine(CoachingSession('fizzbuzz'))
    engine.use_script(SCRIPT)
    return engine


@pytest.fixture
def solution(tmp_path):
    path = tmp_path / 'solution.py'
    path.write_text('def fizzbuzz(n): pass\n')
    return path


def make_reviewer(solution, engine, **kwargs):
    return SolutionReviewer(str(solution), engine, 'pytest -q', console=MagicMock(), **kwargs)


class TestSolutionReviewer:
    """Tests for reviewing a saved solution"""

    def test_failed_run_shows_feedback(self, solution, engine):
        """Test a failing run records an attempt and prints on_run feedback"""
        reviewer = make_reviewer(solution, engine)
        failed = ExecutionResult(stderr='AssertionError: 15', passed=False, exit_code=1)

        with patch('algocoach.coaching.file_watcher.run_tests', return_value=failed) as run:
            result = reviewer.review('code v1')

        assert result is failed
        run.assert_called_once_with('pytest -q', cwd=str(solution.parent), timeout=30.0)
        assert engine.session.get_state().attempts == 1
        assert engine.session.get_state().code_history == ['code v1']
        assert not reviewer.solved.is_set()

        printed = [call.args[0] for call in reviewer.console.print.call_args_list]
        panels = [p for p in printed if hasattr(p, 'renderable')]
        assert any('Check multiples of 15 first.' in getattr(p.renderable, 'markup', '') for p in panels)

    def test_passing_run_stops(self, solution, engine):
        """Test a pass sets solved and later saves are ignored"""
        reviewer = make_reviewer(solution, engine)

        with patch('algocoach.coaching.file_watcher.run_tests',
                   return_value=ExecutionResult(passed=True)) as run:
            assert reviewer.review('good').passed is True
            assert reviewer.review('good again') is None

        assert run.call_count == 1
        assert reviewer.solved.is_set()
        assert engine.session.get_state().passed is True

    def test_harness_error_is_reported(self, solution, engine):
        """Test a command that cannot start does not count as an attempt"""
        reviewer = make_reviewer(solution, engine)

        with patch('algocoach.coaching.file_watcher.run_tests',
                   side_effect=HarnessError('Could not run test command: nope')):
            assert reviewer.review('code') is None

        assert engine.session.get_state().attempts == 0
        reviewer.console.print.assert_any_call('[red]Could not run test command: nope[/red]')


class TestFileEvents:
    """Tests for event filtering and debouncing"""

    def test_other_files_are_ignored(self, solution, engine, tmp_path):
        """Test events for other paths do nothing"""
        reviewer = make_reviewer(solution, engine)
        with patch.object(reviewer, 'review') as review, patch('threading.Thread') as thread:
            reviewer.on_modified(MagicMock(is_directory=False, src_path=str(tmp_path / 'other.py')))
        thread.assert_not_called()
        review.assert_not_called()

    def test_save_starts_review_thread(self, solution, engine):
        """Test a save of the watched file starts one review"""
        reviewer = make_reviewer(solution, engine, debounce_seconds=0)
        with patch('algocoach.coaching.file_watcher.threading.Thread') as thread:
            reviewer.on_modified(MagicMock(is_directory=False, src_path=str(solution)))

        thread.assert_called_once()
        assert thread.call_args.kwargs['args'] == ('def fizzbuzz(n): pass\n',)
        thread.return_value.start.assert_called_once()

    def test_unchanged_content_is_skipped(self, solution, engine):
        """Test saving identical content twice reviews once"""
        reviewer = make_reviewer(solution, engine, debounce_seconds=0)
        with patch('algocoach.coaching.file_watcher.threading.Thread') as thread:
            reviewer.on_modified(MagicMock(is_directory=False, src_path=str(solution)))
            reviewer.on_modified(MagicMock(is_directory=False, src_path=str(solution)))
        assert thread.call_count == 1

    def test_debounce(self, solution, engine):
        """Test rapid saves inside the debounce window are dropped"""
        reviewer = make_reviewer(solution, engine, debounce_seconds=60)
        with patch('algocoach.coaching.file_watcher.threading.Thread') as thread:
            reviewer.on_modified(MagicMock(is_directory=False, src_path=str(solution)))
            solution.write_text('changed\n')
            reviewer.on_modified(MagicMock(is_directory=False, src_path=str(solution)))
        assert thread.call_count == 1

    def test_undecodable_save_is_reported(self, solution, engine):
        """Test a save that is not UTF-8 prints an error and starts no review"""
        solution.write_bytes(b'x = "\xff\xfe"\n')
        reviewer = make_reviewer(solution, engine, debounce_seconds=0)
        with patch('algocoach.coaching.file_watcher.threading.Thread') as thread:
            reviewer.on_modified(MagicMock(is_directory=False, src_path=str(solution)))

        thread.assert_not_called()
        message = reviewer.console.print.call_args.args[0]
        assert message.startswith('[red]Error reading file:')

    def test_atomic_save_via_move(self, solution, engine, tmp_path):
        """Test a temp file renamed over the solution counts as a save"""
        reviewer = make_reviewer(solution, engine, debounce_seconds=0)
        event = MagicMock(is_directory=False, src_path=str(tmp_path / '.solution.py.swp'),
                          dest_path=str(solution))
        with patch('algocoach.coaching.file_watcher.threading.Thread') as thread:
            reviewer.on_moved(event)
        thread.assert_called_once()


class TestSolutionWatcher:
    """Tests for the watcher wrapper"""

    def test_start_and_stop(self, solution, engine):
        """Test the observer watches the solution's directory"""
        watcher = SolutionWatcher(str(solution), engine, 'pytest -q', console=MagicMock())

        with patch('algocoach.coaching.file_watcher.Observer') as observer_cls:
            watcher.start()
            observer = observer_cls.return_value
            observer.schedule.assert_called_once_with(
                watcher.handler, path=str(solution.parent), recursive=False
            )
            observer.start.assert_called_once()

            watcher.stop()
            observer.stop.assert_called_once()
            observer.join.assert_called_once()

    def test_wait_returns_once_solved(self, solution, engine):
        """Test wait() ends when the handler reports a pass"""
        watcher = SolutionWatcher(str(solution), engine, 'pytest -q', console=MagicMock())
        watcher.handler.solved.set()
        watcher.wait()
        assert watcher.observer is None
