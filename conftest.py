"""Shared pytest fixtures"""
import textwrap

import pytest

from specbind.executor.step_registry import StepRegistry
from specbind.parser.feature_parser import FeatureParser

LOGIN_SPEC = """\
Feature: Login
Scenario: Valid login
Given a registered user
When the user logs in with valid credentials
Then the user sees the dashboard
"""


@pytest.fixture
def parser():
    return FeatureParser()


@pytest.fixture
def registry():
    return StepRegistry()


@pytest.fixture
def login_spec():
    return LOGIN_SPEC


@pytest.fixture
def write_file(tmp_path):
    def write(name, content):
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(content), encoding='utf-8')
        return path
    return write
