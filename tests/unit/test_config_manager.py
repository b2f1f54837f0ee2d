"""Unit tests for configuration loading"""
import pytest

from specbind.core.config_manager import ConfigManager
from specbind.exceptions import ConfigurationError


def test_defaults_without_config_file(tmp_path):
    config_manager = ConfigManager(str(tmp_path / 'specbind.yaml'))
    config = config_manager.load_config()

    assert config['language'] == 'en'
    assert config_manager.get('generate.report_undefined') is True
    assert config_manager.get('generate.missing', 'fallback') == 'fallback'
    assert config_manager.step_paths == []


def test_config_file_is_merged_over_defaults(write_file):
    path = write_file('specbind.yaml', """
        steps: steps
        generate:
          output_dir: generated
    """)

    config_manager = ConfigManager(str(path))
    config_manager.load_config()

    assert config_manager.step_paths == ['steps']
    assert config_manager.get('generate.output_dir') == 'generated'
    assert config_manager.get('generate.report_undefined') is True


def test_environment_file_and_overrides(write_file):
    path = write_file('specbind.yaml', """
        features: features
        generate:
          output_dir: generated
          base_class: tests.base.Base
    """)
    write_file('environments/ci.yaml', """
        verify:
          strict: true
        overrides:
          generate:
            output_dir: build
    """)

    config_manager = ConfigManager(str(path), environment='ci')
    config_manager.load_config()

    assert config_manager.get('verify.strict') is True
    assert config_manager.get('generate.output_dir') == 'build'
    assert config_manager.get('generate.base_class') == 'tests.base.Base'


def test_env_vars_are_expanded_and_dotenv_is_loaded(write_file, monkeypatch):
    monkeypatch.delenv('SPECBIND_TEST_FEATURES', raising=False)
    monkeypatch.setenv('SPECBIND_TEST_STEPS', 'my_steps')
    path = write_file('specbind.yaml', """
        features: ${SPECBIND_TEST_FEATURES}
        steps:
          - ${SPECBIND_TEST_STEPS}
          - ${SPECBIND_TEST_UNSET}
    """)
    write_file('.env', "SPECBIND_TEST_FEATURES=specs\n")

    config_manager = ConfigManager(str(path))
    config_manager.load_config()

    assert config_manager.get('features') == 'specs'
    assert config_manager.step_paths == ['my_steps', '${SPECBIND_TEST_UNSET}']


@pytest.mark.parametrize('content', [
    "steps: 3\n",
    "language: [en]\n",
    "- just\n- a list\n",
    "steps: [unclosed\n",
])
def test_invalid_config(write_file, content):
    path = write_file('specbind.yaml', content)

    with pytest.raises(ConfigurationError):
        ConfigManager(str(path)).load_config()
