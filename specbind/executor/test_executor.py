"""Runs parsed scenarios against the registered step definitions"""
import concurrent.futures
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional

from specbind.exceptions import InvocationError, UndefinedStepError
from specbind.executor.report import VerificationReport
from specbind.executor.step_matcher import MatchResult, StepMatcher
from specbind.executor.step_registry import StepRegistry
from specbind.parser.feature_parser import FeatureParser
from specbind.parser.languages import LanguageTable
from specbind.parser.models import Scenario, SpecificationDocument
from specbind.utils.logger import setup_logger

logger = setup_logger(__name__)


class StepStatus(Enum):
    PASSED = "passed"
    FAILED = "failed"
    UNDEFINED = "undefined"
    SKIPPED = "skipped"


@dataclass
class StepResult:
    match: MatchResult
    status: StepStatus
    error: Optional[InvocationError] = None
    duration: float = 0.0

    @property
    def text(self) -> str:
        return self.match.step.text


@dataclass
class ScenarioResult:
    feature: str
    scenario: str
    steps: List[StepResult] = field(default_factory=list)
    error: Optional[InvocationError] = None
    duration: float = 0.0

    @property
    def undefined(self) -> List[MatchResult]:
        return [r.match for r in self.steps if r.status is StepStatus.UNDEFINED]

    @property
    def status(self) -> StepStatus:
        if self.error is not None:
            return StepStatus.FAILED
        if self.undefined:
            return StepStatus.UNDEFINED
        return StepStatus.PASSED


class SpecRunner:
    """
    Verifies the scenarios of specification documents.

    Every step is matched, in order. Matched steps are invoked until the first
    undefined or failing step; after that the remaining steps are still
    matched, so every undefined step gets reported, but they are skipped.
    """

    def __init__(self, registry: StepRegistry, document: Optional[SpecificationDocument] = None):
        self.registry = registry
        self.document = document
        self.matcher = StepMatcher(registry)
        self.report = VerificationReport()
        self.results: List[ScenarioResult] = []

    @classmethod
    def from_file(cls, spec_path, step_paths: Iterable = (),
                  languages: Optional[LanguageTable] = None) -> 'SpecRunner':
        """Parse a specification file and load the step modules it is verified against"""
        registry = StepRegistry()
        for step_path in step_paths:
            registry.load_path(step_path)

        document = FeatureParser(languages).parse_file(Path(spec_path))
        return cls(registry, document)

    @property
    def feature_name(self) -> str:
        if self.document is not None and self.document.feature is not None:
            return self.document.feature.name
        return ""

    def verify(self, scenario_name: str) -> ScenarioResult:
        """Verify one scenario of the loaded document, raising if it did not pass"""
        if self.document is None:
            raise ValueError("No specification document loaded")

        result = self.verify_scenario(self.document.get_scenario(scenario_name))

        if result.error is not None:
            raise result.error
        if result.undefined:
            raise UndefinedStepError(result.undefined)

        return result

    def verify_document(self, document: Optional[SpecificationDocument] = None) -> List[ScenarioResult]:
        """Verify every scenario of a document; failures never stop the other scenarios"""
        document = document or self.document
        if document is None:
            raise ValueError("No specification document loaded")

        feature = document.feature.name if document.feature else ""
        return [self.verify_scenario(scenario, feature) for scenario in document.scenarios]

    def verify_documents(self, documents: List[SpecificationDocument], parallel: int = 1) -> List[ScenarioResult]:
        """Verify several documents, optionally on a thread pool"""
        if parallel <= 1:
            results = []
            for document in documents:
                results.extend(self.verify_document(document))
            return results

        with concurrent.futures.ThreadPoolExecutor(max_workers=parallel) as executor:
            futures = [executor.submit(self.verify_document, document) for document in documents]
            results = []
            for future in futures:
                results.extend(future.result())
        return results

    def verify_scenario(self, scenario: Scenario, feature_name: Optional[str] = None) -> ScenarioResult:
        logger.info(f"Verifying scenario: {scenario.name}")
        started = time.perf_counter()

        scenario_result = ScenarioResult(
            feature=self.feature_name if feature_name is None else feature_name,
            scenario=scenario.name,
        )
        broken = False

        for step in scenario.steps:
            match = self.matcher.match(step)

            if match.undefined:
                logger.warning(f"Undefined step: {step.text}")
                self.report.add_undefined(scenario.name, step, match.closest_phrase)
                scenario_result.steps.append(StepResult(match=match, status=StepStatus.UNDEFINED))
                broken = True
                continue

            if broken:
                scenario_result.steps.append(StepResult(match=match, status=StepStatus.SKIPPED))
                continue

            logger.debug(f"Executing step: {step.text}")
            step_started = time.perf_counter()
            try:
                self.matcher.invoke(match)
            except InvocationError as e:
                logger.error(f"Step failed: {e}")
                self.report.add_failure(scenario.name, step, e.cause)
                scenario_result.error = e
                scenario_result.steps.append(StepResult(
                    match=match,
                    status=StepStatus.FAILED,
                    error=e,
                    duration=time.perf_counter() - step_started,
                ))
                broken = True
                continue

            scenario_result.steps.append(StepResult(
                match=match,
                status=StepStatus.PASSED,
                duration=time.perf_counter() - step_started,
            ))

        scenario_result.duration = time.perf_counter() - started
        self.results.append(scenario_result)
        return scenario_result

    def report_undefined_steps(self, strict: bool = False) -> str:
        """Log the aggregate report; with ``strict`` raise if any step was undefined"""
        text = self.report.format()

        if self.report.passed:
            logger.info(text)
        else:
            logger.warning(text)

        if strict and self.report.undefined:
            undefined = [r.match for result in self.results for r in result.steps
                         if r.status is StepStatus.UNDEFINED]
            raise UndefinedStepError(undefined)

        return text
