"""
Plain text specification parser.

Reads Feature/Scenario/Given/When/Then text, with keywords taken from the
language named by a ``# language: <code>`` directive, into a
SpecificationDocument.
"""

import concurrent.futures
import glob
import re
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from specbind.exceptions import ParseError
from specbind.parser.blocks import parse_block
from specbind.parser.languages import Language, LanguageTable, default_languages
from specbind.parser.models import Feature, Scenario, SpecificationDocument, StepType
from specbind.parser.text_lines import discover_language, get_lines
from specbind.utils.logger import setup_logger

logger = setup_logger(__name__)

SPECIFICATION_SUFFIXES = ('.txt', '.feature', '.spec')

_header_pattern = r'^\s*{0}(?:\s*\d*)?\s*:\s*(.+)'
_step_pattern = r'^\s*({0})\s+.+'
_header_line = re.compile(r'^@(?P<name>[\w-]+)(?:\s*:\s*(?P<value>.*))?$')


class ParserState(Enum):
    NO_SCENARIO = "no_scenario"
    IN_FEATURE_DESCRIPTION = "in_feature_description"
    IN_SCENARIO = "in_scenario"


class KeywordPatterns:
    """The compiled keyword regexes of one language"""

    def __init__(self, language: Language):
        self.language = language
        self.feature = re.compile(_header_pattern.format(language.pattern('feature')), re.IGNORECASE)
        self.scenario = re.compile(_header_pattern.format(language.pattern('scenario')), re.IGNORECASE)
        self.steps = [
            (StepType.GIVEN, re.compile(_step_pattern.format(language.pattern('given')), re.IGNORECASE)),
            (StepType.WHEN, re.compile(_step_pattern.format(language.pattern('when')), re.IGNORECASE)),
            (StepType.THEN, re.compile(_step_pattern.format(language.pattern('then')), re.IGNORECASE)),
        ]
        self.and_ = re.compile(_step_pattern.format(language.pattern('and')), re.IGNORECASE)


class _DocumentReader:
    """Single pass over the extracted lines, driven by an explicit state and cursor"""

    def __init__(self, lines: List[str], patterns: KeywordPatterns, document: SpecificationDocument):
        self.lines = lines
        self.patterns = patterns
        self.document = document
        self.index = 0
        self.state = ParserState.NO_SCENARIO
        self.scenario: Optional[Scenario] = None
        self.step_type = StepType.UNKNOWN
        self.description: List[str] = []
        self.headers = {}

    def read(self) -> SpecificationDocument:
        while self.index < len(self.lines):
            line = self.lines[self.index]

            if self.state is ParserState.IN_FEATURE_DESCRIPTION:
                self._read_description_line(line)
            else:
                self._read_line(line)

            self.index += 1

        if self.state is ParserState.IN_FEATURE_DESCRIPTION:
            self._finish_description()

        return self.document

    def _read_line(self, line: str) -> None:
        match = self.patterns.feature.match(line)
        if match:
            self._start_feature(match.group(1).strip())
            return

        match = self.patterns.scenario.match(line)
        if match:
            self._start_scenario(match.group(1).strip())
            return

        if self.state is ParserState.NO_SCENARIO and self._read_header(line):
            return

        self._read_step(line)

    def _read_description_line(self, line: str) -> None:
        match = self.patterns.scenario.match(line)
        if match:
            self._finish_description()
            self._start_scenario(match.group(1).strip())
        elif not self._read_header(line):
            self.description.append(line)

    def _read_header(self, line: str) -> bool:
        match = _header_line.match(line)
        if not match:
            return False

        self.headers[match.group('name').lower()] = (match.group('value') or '').strip()
        if self.document.feature is not None:
            self.document.feature.headers.update(self.headers)
        return True

    def _start_feature(self, name: str) -> None:
        if self.document.feature is not None:
            raise ParseError(f'A document can only contain one feature, found a second: "{name}"', name)

        self.document.feature = Feature(
            name=name,
            headers=dict(self.headers),
            scenarios=self.document.scenarios,
        )
        self.description = []
        self.state = ParserState.IN_FEATURE_DESCRIPTION

    def _finish_description(self) -> None:
        self.document.feature.description = '\n'.join(self.description).strip('\r\n')
        self.state = ParserState.NO_SCENARIO

    def _start_scenario(self, name: str) -> None:
        self.scenario = Scenario(name=name)
        self.document.scenarios.append(self.scenario)
        self.step_type = StepType.UNKNOWN
        self.state = ParserState.IN_SCENARIO

    def _classify(self, line: str) -> Tuple[StepType, str]:
        for step_type, regex in self.patterns.steps:
            match = regex.match(line)
            if match:
                return step_type, match.group(1)

        match = self.patterns.and_.match(line)
        if match:
            if self.step_type is StepType.UNKNOWN:
                raise ParseError('"And" steps cannot appear before "given", "when", or "then" steps.', line)
            return self.step_type, match.group(1)

        raise ParseError(f'Unrecognized step: "{line}".', line)

    def _read_step(self, line: str) -> None:
        step_type, keyword = self._classify(line)

        if self.state is not ParserState.IN_SCENARIO:
            raise ParseError("Steps cannot appear before a scenario is started.", line)

        self.step_type = step_type
        block, consumed = parse_block(self.lines, self.index)
        self.scenario.add_step(step_type, line, keyword, block)
        self.index += consumed


class FeatureParser:
    """Parse plain text specifications"""

    def __init__(self, languages: Optional[LanguageTable] = None):
        self.languages = languages or default_languages()

    def parse(self, text: str, source: str = "") -> SpecificationDocument:
        """Parse specification text into a document"""
        language = self.languages.get(discover_language(text, self.languages.default))
        document = SpecificationDocument(language=language.code, source=source)
        reader = _DocumentReader(get_lines(text), KeywordPatterns(language), document)
        return reader.read()

    def parse_file(self, file_path) -> SpecificationDocument:
        """Parse a UTF-8 specification file"""
        path = Path(file_path)
        logger.debug(f"Parsing specification file: {path}")

        with open(path, 'r', encoding='utf-8') as f:
            text = f.read()

        try:
            return self.parse(text, source=str(path))
        except ParseError as e:
            raise ParseError(f"{path}: {e}", e.line) from e

    def load_features(self, paths: Iterable[str], parallel: int = 1) -> List[SpecificationDocument]:
        """Parse every specification file named by the given files, directories or glob patterns"""
        files = expand_paths(paths)

        if parallel <= 1:
            return [self.parse_file(path) for path in files]

        with concurrent.futures.ThreadPoolExecutor(max_workers=parallel) as executor:
            return list(executor.map(self.parse_file, files))


def expand_paths(paths: Iterable[str]) -> List[Path]:
    """Expand wildcards and directories into specification files, keeping order"""
    expanded: List[Path] = []

    for entry in paths:
        entry = str(entry)
        if any(char in entry for char in '*?['):
            candidates = [Path(match) for match in sorted(glob.glob(entry, recursive=True))]
        elif Path(entry).is_dir():
            candidates = sorted(p for p in Path(entry).rglob('*') if p.suffix in SPECIFICATION_SUFFIXES)
        else:
            candidates = [Path(entry)]

        for candidate in candidates:
            if candidate not in expanded:
                expanded.append(candidate)

    return expanded


def parse_text(text: str, languages: Optional[LanguageTable] = None) -> SpecificationDocument:
    return FeatureParser(languages).parse(text)
