#!/usr/bin/env python3
"""
Tests for ScriptLoader.
"""

import json

import pytest

from algocoach.coaching.errors import ScriptLoadError, ScriptValidationError
from algocoach.coaching.loader import ScriptLoader
from algocoach.coaching.state import Difficulty, StepType


TRAINER_YAML = """\
id: climbing-stairs
title: Climbing Stairs
difficulty: easy
tags:
  - dynamic-programming
language: python
steps:
  - type: intro
    content: |
      # {{title}}
      Count the ways up.
  - type: on_run
    trigger: "stderr.match(/RecursionError/) || attempts > 3"
    content: Memoize your recursion.
  - type: on_request
    keywords: [stuck, help]
    content: Think of fib(n).
"""


class TestFindScriptPath:
    """Tests for locating scripts"""

    def test_file_path(self, tmp_path):
        """Test a direct file path is returned as-is"""
        script = tmp_path / 'custom.yaml'
        script.write_text(TRAINER_YAML)
        assert ScriptLoader().find_script_path(script) == script

    def test_directory_prefers_first_filename(self, tmp_path):
        """Test trainer.yaml wins over trainer.yml and trainer.json"""
        (tmp_path / 'trainer.json').write_text('{}')
        (tmp_path / 'trainer.yml').write_text('')
        (tmp_path / 'trainer.yaml').write_text(TRAINER_YAML)
        assert ScriptLoader().find_script_path(tmp_path) == tmp_path / 'trainer.yaml'

    def test_directory_fallback(self, tmp_path):
        """Test other filenames are used when trainer.yaml is absent"""
        (tmp_path / 'trainer.json').write_text('{}')
        assert ScriptLoader().find_script_path(tmp_path) == tmp_path / 'trainer.json'

    def test_custom_filenames(self, tmp_path):
        """Test the loader honours configured filenames"""
        (tmp_path / 'coach.yaml').write_text(TRAINER_YAML)
        assert ScriptLoader().find_script_path(tmp_path) is None
        assert ScriptLoader(['coach.yaml']).find_script_path(tmp_path) == tmp_path / 'coach.yaml'

    def test_missing(self, tmp_path):
        """Test nonexistent paths"""
        assert ScriptLoader().find_script_path(tmp_path) is None
        assert ScriptLoader().find_script_path(tmp_path / 'nope') is None


class TestParsing:
    """Tests for parse_script_text() and read_script()"""

    def test_parse_yaml(self):
        """Test YAML parsing keeps block content and quoted triggers"""
        raw = ScriptLoader().parse_script_text(TRAINER_YAML)
        assert raw['id'] == 'climbing-stairs'
        assert raw['steps'][0]['content'] == '# {{title}}\nCount the ways up.\n'
        assert raw['steps'][1]['trigger'] == 'stderr.match(/RecursionError/) || attempts > 3'
        assert raw['steps'][2]['keywords'] == ['stuck', 'help']

    def test_parse_json(self):
        """Test JSON parsing"""
        raw = ScriptLoader().parse_script_text('{"id": "x"}', 'json')
        assert raw == {'id': 'x'}

    def test_non_mapping_root(self):
        """Test a list or scalar document is rejected"""
        with pytest.raises(ScriptLoadError) as exc:
            ScriptLoader().parse_script_text('- a\n- b\n')
        assert exc.value.context['type'] == 'list'

        with pytest.raises(ScriptLoadError):
            ScriptLoader().parse_script_text('')

    def test_bad_syntax(self):
        """Test malformed YAML and JSON"""
        with pytest.raises(ScriptLoadError):
            ScriptLoader().parse_script_text('a: [1, 2')
        with pytest.raises(ScriptLoadError):
            ScriptLoader().parse_script_text('{"a": ', 'json')

    def test_read_script_adds_file_context(self, tmp_path):
        """Test load errors name the offending file"""
        path = tmp_path / 'trainer.yaml'
        path.write_text('a: [1, 2')
        with pytest.raises(ScriptLoadError) as exc:
            ScriptLoader().read_script(tmp_path)
        assert exc.value.context['file_path'] == str(path)

    def test_read_script_json_by_extension(self, tmp_path):
        """Test .json files are parsed as JSON"""
        (tmp_path / 'trainer.json').write_text(json.dumps({'id': 'from-json'}))
        assert ScriptLoader().read_script(tmp_path) == {'id': 'from-json'}

    def test_read_script_missing(self, tmp_path):
        assert ScriptLoader().read_script(tmp_path) is None


class TestLoad:
    """Tests for load()"""

    def test_load_valid(self, tmp_path):
        """Test a valid file becomes a GuidanceScript"""
        (tmp_path / 'trainer.yaml').write_text(TRAINER_YAML)
        script = ScriptLoader().load(tmp_path)
        assert script.title == 'Climbing Stairs'
        assert script.difficulty == Difficulty.EASY
        assert [step.type for step in script.steps] == [StepType.INTRO, StepType.ON_RUN, StepType.ON_REQUEST]

    def test_load_invalid(self, tmp_path):
        """Test structural problems raise ScriptValidationError"""
        (tmp_path / 'trainer.yaml').write_text('id: x\n')
        with pytest.raises(ScriptValidationError) as exc:
            ScriptLoader().load(tmp_path)
        assert 'title is required' in exc.value.errors
        assert 'steps is required' in exc.value.errors

    def test_load_missing(self, tmp_path):
        assert ScriptLoader().load(tmp_path) is None
