#!/usr/bin/env python3
"""
Tests for the algocoach command line.
"""

from unittest.mock import patch

import pytest
import yaml

from algocoach import cli
from algocoach.coaching.validator import validate_script


VALID_YAML = """\
id: two-sum
title: Two Sum
difficulty: easy
tags: [array, hash-table]
language: python
steps:
  - type: intro
    content: Hi {{title}}
  - type: hint
    trigger: "attempts > 2"
    content: try again
"""


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    monkeypatch.setenv('ALGOCOACH_HOME', str(tmp_path / 'config'))


@pytest.fixture
def problem_dir(tmp_path):
    directory = tmp_path / 'two-sum'
    directory.mkdir()
    (directory / 'trainer.yaml').write_text(VALID_YAML)
    return directory


class TestValidateCommand:
    """Tests for 'algocoach validate'"""

    def test_valid(self, problem_dir, capsys):
        """Test a valid script exits 0"""
        assert cli.main(['validate', str(problem_dir)]) == 0
        assert 'Valid guidance script' in capsys.readouterr().out

    def test_invalid_lists_every_error(self, tmp_path, capsys):
        """Test every violation is printed and the exit code is 1"""
        (tmp_path / 'trainer.yaml').write_text("id: ''\ndifficulty: extreme\nsteps: []\n")
        assert cli.main(['validate', str(tmp_path)]) == 1

        out = capsys.readouterr().out
        assert 'id cannot be empty' in out
        assert 'title is required' in out
        assert 'difficulty must be one of' in out
        assert 'steps must have at least one step' in out

    def test_trigger_warnings(self, tmp_path, capsys):
        """Test unusable triggers are warned about without failing"""
        (tmp_path / 'trainer.yaml').write_text(VALID_YAML.replace('attempts > 2', 'tries > 2'))
        assert cli.main(['validate', str(tmp_path)]) == 0
        out = capsys.readouterr().out
        assert 'warning:' in out
        assert "unknown identifier 'tries'" in out

    def test_missing_script(self, tmp_path, capsys):
        assert cli.main(['validate', str(tmp_path)]) == 1
        assert 'No guidance script found' in capsys.readouterr().out

    def test_malformed_yaml(self, tmp_path, capsys):
        (tmp_path / 'trainer.yaml').write_text('id: [oops\n')
        assert cli.main(['validate', str(tmp_path)]) == 1
        assert 'Failed to parse YAML content' in capsys.readouterr().out


class TestInfoCommand:
    """Tests for 'algocoach info'"""

    def test_info(self, problem_dir, capsys):
        """Test metadata and step counts are shown"""
        assert cli.main(['info', str(problem_dir / 'trainer.yaml')]) == 0
        out = capsys.readouterr().out
        assert 'Two Sum' in out
        assert 'array, hash-table' in out
        assert 'hint' in out

    def test_info_invalid(self, tmp_path):
        (tmp_path / 'trainer.yaml').write_text('id: x\n')
        assert cli.main(['info', str(tmp_path)]) == 1


class TestGenerateCommand:
    """Tests for 'algocoach generate'"""

    def test_generate_to_stdout(self, capsys):
        """Test YAML is written to stdout and validates"""
        code = cli.main(['generate', '--id', 'lis', '--title', 'Longest Increasing Subsequence',
                         '--difficulty', 'medium', '--tags', 'dynamic-programming'])
        assert code == 0

        raw = yaml.safe_load(capsys.readouterr().out)
        assert raw['id'] == 'lis'
        assert validate_script(raw).valid

    def test_generate_to_directory(self, tmp_path):
        """Test --output with a directory writes trainer.yaml"""
        code = cli.main(['generate', '--id', 'x', '--title', 'X', '--difficulty', 'hard',
                         '--template', 'basic', '--language', 'go', '-o', str(tmp_path)])
        assert code == 0

        raw = yaml.safe_load((tmp_path / 'trainer.yaml').read_text())
        assert raw['language'] == 'go'
        assert validate_script(raw).valid

    def test_generate_then_validate(self, tmp_path):
        """Test a generated file passes the validate command"""
        cli.main(['generate', '--id', 'g', '--title', 'G', '--difficulty', 'easy',
                  '--tags', 'graph', 'bfs', '-o', str(tmp_path / 'trainer.yaml')])
        assert cli.main(['validate', str(tmp_path)]) == 0


class TestSessionCommands:
    """Tests for 'coach' and 'watch' wiring"""

    def test_coach_starts_repl(self, problem_dir):
        """Test the REPL gets a loaded engine and the test command"""
        with patch('algocoach.repl.CoachREPL') as repl_cls:
            assert cli.main(['coach', str(problem_dir), '--test-command', 'pytest -q']) == 0

        engine = repl_cls.call_args.args[0]
        assert engine.get_script_info().id == 'two-sum'
        assert engine.session.problem_id == 'two-sum'
        assert repl_cls.call_args.kwargs['test_command'] == 'pytest -q'
        repl_cls.return_value.run.assert_called_once()

    def test_coach_invalid_script(self, tmp_path):
        (tmp_path / 'trainer.yaml').write_text('id: x\n')
        assert cli.main(['coach', str(tmp_path)]) == 1

    def test_watch_requires_test_command(self, problem_dir):
        assert cli.main(['watch', str(problem_dir), str(problem_dir / 'solution.py')]) == 1

    def test_watch_starts_watcher(self, problem_dir):
        """Test the watcher is started and waited on"""
        with patch('algocoach.coaching.file_watcher.SolutionWatcher') as watcher_cls:
            code = cli.main(['watch', str(problem_dir), str(problem_dir / 'solution.py'),
                             '--test-command', 'pytest -q'])
        assert code == 0
        watcher_cls.return_value.start.assert_called_once()
        watcher_cls.return_value.wait.assert_called_once()


class TestMain:
    """Tests for top-level behaviour"""

    def test_no_command_prints_help(self, capsys):
        assert cli.main([]) == 0
        assert 'usage' in capsys.readouterr().out.lower()
