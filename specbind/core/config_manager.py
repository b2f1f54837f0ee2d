"""Configuration management"""
import copy
import os
from pathlib import Path
from typing import Dict, Any, List, Optional

import yaml
from dotenv import load_dotenv

from specbind.exceptions import ConfigurationError
from specbind.utils.helpers import deep_get
from specbind.utils.logger import setup_logger

logger = setup_logger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    'language': 'en',
    'languages_file': None,
    'features': 'features',
    'steps': [],
    'generate': {
        'output_dir': None,
        'base_class': None,
        'report_undefined': True,
    },
    'verify': {
        'strict': False,
    },
    'logging': {
        'level': 'INFO',
    },
}


class ConfigManager:
    """Loads specbind.yaml, merges the environment file and expands ${VAR} values"""

    def __init__(self, config_path: str = 'specbind.yaml', environment: Optional[str] = None,
                 dotenv_path: Optional[str] = None):
        self.config_path = Path(config_path)
        self.environment = environment
        self.dotenv_path = dotenv_path
        self.config: Dict[str, Any] = copy.deepcopy(DEFAULT_CONFIG)

    def load_config(self) -> Dict[str, Any]:
        """Load and merge configuration files"""
        if self.dotenv_path:
            load_dotenv(self.dotenv_path)
        else:
            load_dotenv(self.config_path.parent / '.env')

        if self.config_path.exists():
            self.config = self._merge_configs(self.config, self._read_yaml(self.config_path))
        else:
            logger.debug(f"Config file not found, using defaults: {self.config_path}")

        if self.environment:
            env_config_path = self.config_path.parent / 'environments' / f'{self.environment}.yaml'
            if env_config_path.exists():
                env_config = self._read_yaml(env_config_path)

                if 'overrides' in env_config:
                    self._apply_overrides(self.config, env_config.pop('overrides'))

                self.config = self._merge_configs(self.config, env_config)
            else:
                logger.warning(f"Environment config not found: {env_config_path}")

        self.config = self._process_env_vars(self.config)
        self._validate()

        logger.debug(f"Configuration loaded for environment: {self.environment or 'default'}")
        return self.config

    def _read_yaml(self, path: Path) -> Dict[str, Any]:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Top level of {path} must be a mapping")
        return data

    def _merge_configs(self, base: Dict, override: Dict) -> Dict:
        """Deep merge two dictionaries"""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    def _apply_overrides(self, base: Dict, overrides: Dict) -> None:
        """Replace keys of existing sections instead of deep merging them"""
        for section, values in overrides.items():
            if isinstance(base.get(section), dict) and isinstance(values, dict):
                base[section].update(values)
            else:
                base[section] = values

    def _process_env_vars(self, config: Any) -> Any:
        """Replace ${VAR} with environment variables"""
        if isinstance(config, dict):
            return {k: self._process_env_vars(v) for k, v in config.items()}
        elif isinstance(config, list):
            return [self._process_env_vars(item) for item in config]
        elif isinstance(config, str) and config.startswith('${') and config.endswith('}'):
            var_name = config[2:-1]
            return os.environ.get(var_name, config)
        else:
            return config

    def _validate(self) -> None:
        steps = self.config.get('steps')
        if isinstance(steps, str):
            self.config['steps'] = [steps]
        elif not isinstance(steps, list):
            raise ConfigurationError("'steps' must be a path or a list of paths")

        if not isinstance(self.config.get('language'), str):
            raise ConfigurationError("'language' must be a language code")

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key (supports dot notation)"""
        return deep_get(self.config, key, default)

    @property
    def step_paths(self) -> List[str]:
        return list(self.config.get('steps', []))
