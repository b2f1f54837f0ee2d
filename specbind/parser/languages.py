"""Localized keyword tables"""
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from specbind.exceptions import ConfigurationError
from specbind.parser.text_lines import DEFAULT_LANGUAGE
from specbind.utils.logger import setup_logger

logger = setup_logger(__name__)

LANGUAGES_FILE = Path(__file__).with_name('languages.yaml')
KEYWORDS = ('feature', 'scenario', 'given', 'when', 'then', 'and')


@dataclass(frozen=True)
class Language:
    """The six keywords of one language, each possibly holding |-separated synonyms"""
    code: str
    feature: str
    scenario: str
    given: str
    when: str
    then: str
    and_: str

    def words(self, key: str) -> List[str]:
        """Give every synonym of a keyword"""
        value = self.and_ if key == 'and' else getattr(self, key)
        return [word.strip() for word in value.split('|') if word.strip()]

    def pattern(self, key: str) -> str:
        """Regex alternation over the synonyms of a keyword, longest first"""
        words = sorted(self.words(key), key=len, reverse=True)
        return '(?:' + '|'.join(re.escape(word) for word in words) + ')'


class LanguageTable:
    """Maps language codes to keyword sets, falling back to the default language"""

    def __init__(self, mappings: Dict[str, Dict[str, str]], default: str = DEFAULT_LANGUAGE):
        self._mappings = {code.lower(): dict(keywords) for code, keywords in mappings.items()}
        self.default = default.lower()
        if self.default not in self._mappings:
            raise ConfigurationError(f"Language table has no entry for default language '{default}'")
        self.extra_path: Optional[str] = None
        self._cache: Dict[str, Language] = {}

    @classmethod
    def load(cls, extra_path: Optional[str] = None, default: str = DEFAULT_LANGUAGE) -> 'LanguageTable':
        """Load the built-in table, merging an optional user supplied YAML file over it"""
        mappings = _read_table(LANGUAGES_FILE)

        if extra_path:
            for code, keywords in _read_table(Path(extra_path)).items():
                mappings.setdefault(code, {}).update(keywords)

        table = cls(mappings, default)
        table.extra_path = str(extra_path) if extra_path else None
        return table

    @property
    def codes(self) -> List[str]:
        return sorted(self._mappings)

    def resolve(self, code: str) -> str:
        """Find the table entry for a code: exact, then its primary subtag, then the default"""
        code = (code or '').lower()

        if code in self._mappings:
            return code

        primary = re.split(r'[-_]', code, maxsplit=1)[0]
        if primary in self._mappings:
            return primary

        logger.debug(f"Unknown language '{code}', falling back to '{self.default}'")
        return self.default

    def get(self, code: str) -> Language:
        resolved = self.resolve(code)

        if resolved not in self._cache:
            keywords = dict(self._mappings[self.default])
            keywords.update(self._mappings[resolved])
            self._cache[resolved] = Language(
                code=resolved,
                feature=keywords['feature'],
                scenario=keywords['scenario'],
                given=keywords['given'],
                when=keywords['when'],
                then=keywords['then'],
                and_=keywords['and'],
            )

        return self._cache[resolved]


def _read_table(path: Path) -> Dict[str, Dict[str, str]]:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Cannot read language table {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Language table {path} must be a mapping of language codes")

    table = {}
    for code, keywords in data.items():
        if not isinstance(keywords, dict):
            raise ConfigurationError(f"Language '{code}' in {path} must be a mapping of keywords")
        unknown = set(keywords) - set(KEYWORDS)
        if unknown:
            raise ConfigurationError(f"Language '{code}' has unknown keywords: {', '.join(sorted(unknown))}")
        table[str(code).lower()] = {key: str(value) for key, value in keywords.items()}

    return table


_default_table: Optional[LanguageTable] = None


def default_languages() -> LanguageTable:
    """Built-in table, loaded once"""
    global _default_table
    if _default_table is None:
        _default_table = LanguageTable.load()
    return _default_table
