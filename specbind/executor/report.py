"""Aggregate report of undefined steps and failed invocations"""
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from specbind.parser.blocks import Form, Grid
from specbind.parser.models import Step

_token = re.compile(r'"[^"]*"|\'[^\']*\'|\S+')
_integer = re.compile(r'^[-+]?\d+(?:st|nd|rd|th)?$', re.IGNORECASE)
_decimal = re.compile(r'^[-+]?\d*\.\d+$')


@dataclass
class UndefinedStep:
    scenario: str
    step_text: str
    closest_phrase: Optional[str]
    suggestion: str


@dataclass
class StepFailure:
    scenario: str
    step_text: str
    error: BaseException


@dataclass
class VerificationReport:
    undefined: List[UndefinedStep] = field(default_factory=list)
    failures: List[StepFailure] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.undefined and not self.failures

    def add_undefined(self, scenario: str, step: Step, closest_phrase: Optional[str]) -> None:
        self.undefined.append(UndefinedStep(
            scenario=scenario,
            step_text=step.text,
            closest_phrase=closest_phrase,
            suggestion=suggest_definition(step),
        ))

    def add_failure(self, scenario: str, step: Step, error: BaseException) -> None:
        self.failures.append(StepFailure(scenario=scenario, step_text=step.text, error=error))

    def format(self) -> str:
        if self.passed:
            return "All steps are defined and passed."

        lines = []

        if self.failures:
            lines.append(f"{len(self.failures)} step(s) failed:")
            for failure in self.failures:
                lines.append(f"  [{failure.scenario}] {failure.step_text}")
                lines.append(f"      {type(failure.error).__name__}: {failure.error}")

        if self.undefined:
            if lines:
                lines.append("")
            lines.append(f"{len(self.undefined)} undefined step(s):")
            for undefined in self.undefined:
                lines.append(f"  [{undefined.scenario}] {undefined.step_text}")
                if undefined.closest_phrase:
                    lines.append(f"      closest definition: {undefined.closest_phrase}")

            lines.append("")
            lines.append("You can implement the undefined steps with:")
            seen = []
            for undefined in self.undefined:
                if undefined.suggestion not in seen:
                    seen.append(undefined.suggestion)
                    lines.append("")
                    lines.append(undefined.suggestion)

        return "\n".join(lines)


def _parameter_kind(token: str) -> Optional[Tuple[str, str]]:
    """Base name and annotation for a token that looks like a value"""
    if token[0] in '"\'':
        return 'text', 'str'
    if _integer.match(token):
        return 'number', 'int'
    if _decimal.match(token):
        return 'value', 'float'
    return None


def suggest_definition(step: Step) -> str:
    """Python stub of a step definition that would match the step"""
    tokens = _token.findall(step.body)
    # literal words are reserved; a parameter named like one would capture it
    taken = {re.sub(r'\W', '', token).lower() for token in tokens if _parameter_kind(token) is None}

    def parameter_name(base: str) -> str:
        name, counter = base, 1
        while name in taken:
            counter += 1
            name = f"{base}{counter}"
        taken.add(name)
        return name

    words = [step.type.value]
    parameters = []

    for token in tokens:
        kind = _parameter_kind(token)
        if kind is not None:
            name = parameter_name(kind[0])
            parameters.append((name, kind[1]))
            words.append(name)
        else:
            word = re.sub(r'\W', '', token).lower()
            if word:
                words.append(word)

    if isinstance(step.block, Form):
        parameters.append((parameter_name('form'), 'Form'))
    elif isinstance(step.block, Grid):
        parameters.append((parameter_name('grid'), 'Grid'))

    signature = ", ".join(f"{name}: {annotation}" for name, annotation in parameters)
    return f"def {'_'.join(words)}({signature}):\n    raise NotImplementedError"
