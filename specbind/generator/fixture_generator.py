"""Generates pytest modules that verify the scenarios of specification files"""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from jinja2 import Environment, FileSystemLoader

from specbind.exceptions import ConfigurationError
from specbind.parser.feature_parser import FeatureParser, expand_paths
from specbind.parser.models import SpecificationDocument
from specbind.utils.helpers import make_class_name, make_identifier
from specbind.utils.logger import setup_logger

logger = setup_logger(__name__)

TEMPLATE_DIR = Path(__file__).parent / 'templates'
TEMPLATE_NAME = 'test_module.py.j2'


@dataclass
class GeneratedModule:
    spec_path: Path
    module_path: Path
    written: bool


class FixtureGenerator:
    """Renders one pytest module per specification file"""

    def __init__(self, parser: Optional[FeatureParser] = None, output_dir: Optional[str] = None,
                 base_class: Optional[str] = None, setup: bool = True, report_undefined: bool = True,
                 step_paths: Sequence[str] = ()):
        if not setup and not base_class:
            raise ConfigurationError(
                "Modules generated without a setup method need a base class that provides the runner"
            )

        self.parser = parser or FeatureParser()
        self.output_dir = Path(output_dir) if output_dir else None
        self.base_class = base_class
        self.setup = setup
        self.report_undefined = report_undefined
        self.step_paths = [Path(p) for p in step_paths]
        self.env = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=False,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters['pyrepr'] = repr

    def module_path_for(self, spec_path: Path) -> Path:
        directory = self.output_dir or spec_path.parent
        return directory / f"test_{make_identifier(spec_path.stem).lower()}.py"

    def render(self, document: SpecificationDocument, spec_path: Path, module_path: Path) -> str:
        """Source text of the test module for a parsed document"""
        module_dir = module_path.parent
        feature = document.feature

        languages = self.parser.languages
        base_module, base_class = None, None
        if self.base_class:
            base_module, _, base_class = self.base_class.replace(':', '.').rpartition('.')

        return self.env.get_template(TEMPLATE_NAME).render(
            spec_name=spec_path.name,
            spec_path=_relative(spec_path, module_dir),
            language=languages.default,
            languages_file=_relative(Path(languages.extra_path), module_dir) if languages.extra_path else None,
            step_paths=[_relative(p, module_dir) for p in self.step_paths],
            feature_name=feature.name if feature else spec_path.stem,
            ignore=feature.headers.get('ignore') if feature else None,
            class_name=make_class_name(spec_path.stem),
            base_module=base_module or None,
            base_class=base_class,
            setup=self.setup,
            report_undefined=self.report_undefined,
            tests=self._tests(document.scenario_names),
        )

    def _tests(self, scenario_names: List[str]) -> List[dict]:
        tests = []
        used = set()

        for name in scenario_names:
            method = 'test_' + make_identifier(name).lower()
            candidate, counter = method, 1
            while candidate in used:
                counter += 1
                candidate = f"{method}_{counter}"
            used.add(candidate)
            tests.append({'method': candidate, 'scenario': name})

        return tests

    def generate(self, spec_path) -> GeneratedModule:
        """Write the module for one file, leaving it untouched when the content did not change"""
        spec_path = Path(spec_path)
        module_path = self.module_path_for(spec_path)
        document = self.parser.parse_file(spec_path)
        new_text = self.render(document, spec_path, module_path)

        old_text = module_path.read_text(encoding='utf-8') if module_path.exists() else ''
        if old_text == new_text:
            logger.info(f"Up to date: {module_path}")
            return GeneratedModule(spec_path, module_path, written=False)

        module_path.parent.mkdir(parents=True, exist_ok=True)
        module_path.write_text(new_text, encoding='utf-8')
        logger.info(f"Writing to {module_path}")
        return GeneratedModule(spec_path, module_path, written=True)

    def generate_all(self, paths: Iterable[str]) -> List[GeneratedModule]:
        return [self.generate(path) for path in expand_paths(paths)]


def _relative(path: Path, start: Path) -> str:
    return Path(os.path.relpath(path.resolve(), start.resolve())).as_posix()
