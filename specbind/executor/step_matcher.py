"""Matches scenario steps against registered step definitions"""
import difflib
import typing
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from specbind.exceptions import InvocationError
from specbind.executor.inline_types import unwrap_optional
from specbind.executor.step_registry import Parameter, StepDefinition, StepRegistry
from specbind.parser.blocks import Block, Form, Grid
from specbind.parser.models import Step
from specbind.utils.logger import setup_logger

logger = setup_logger(__name__)


@dataclass
class MatchResult:
    """A step bound to a definition and its arguments, or an undefined step"""
    step: Step
    definition: Optional[StepDefinition] = None
    arguments: Dict[str, Any] = field(default_factory=dict)
    closest_phrase: Optional[str] = None

    @property
    def undefined(self) -> bool:
        return self.definition is None


class StepMatcher:
    """Finds the first definition, in registration order, whose pattern matches a step"""

    def __init__(self, registry: StepRegistry):
        self.registry = registry

    def match(self, step: Step) -> MatchResult:
        candidates = self.registry.definitions_for(step.type)
        body = step.body

        for definition in candidates:
            if definition.error:
                continue

            for pattern in self.registry.patterns_for(definition):
                match = pattern.match(body)
                if not match:
                    continue

                try:
                    arguments = self._convert_arguments(definition, match)
                except ValueError as e:
                    logger.debug(f'"{body}" matched {definition.name} but its arguments did not convert: {e}')
                    continue

                return MatchResult(step=step, definition=definition, arguments=arguments)

        logger.debug(f"Undefined step: {step.text}")
        return MatchResult(step=step, closest_phrase=self.closest_phrase(step))

    def _convert_arguments(self, definition: StepDefinition, match) -> Dict[str, Any]:
        arguments = {}

        for parameter in definition.inline_parameters:
            raw = match.group(definition.group_name(parameter))
            if raw is None and parameter.has_default:
                continue
            arguments[parameter.name] = self.registry.catalog.convert(raw, parameter.type)

        return arguments

    def closest_phrase(self, step: Step) -> Optional[str]:
        """The registered phrase most similar to the step, preferring the step's own type"""
        candidates = self.registry.definitions_for(step.type) or list(self.registry.definitions)
        if not candidates:
            return None

        body = step.body.lower()
        best = max(candidates, key=lambda d: difflib.SequenceMatcher(None, body, d.phrase).ratio())
        return best.phrase

    def invoke(self, result: MatchResult) -> Any:
        """Call the matched definition, passing the step's block to its block parameters"""
        arguments = dict(result.arguments)

        try:
            for parameter in result.definition.block_parameters:
                if result.step.block is None and parameter.has_default:
                    continue
                arguments[parameter.name] = adapt_block(result.step.block, parameter)

            return result.definition.func(**arguments)
        except Exception as e:
            raise InvocationError(result.step.text, e) from e


def adapt_block(block: Optional[Block], parameter: Parameter) -> Any:
    """Shape a block the way the parameter's annotation asks for"""
    if block is None or parameter.type is None:
        return block

    inner, _ = unwrap_optional(parameter.type)
    inner = typing.get_origin(inner) or inner

    if inner is dict:
        if not isinstance(block, Form):
            raise TypeError(f"Parameter '{parameter.name}' expects a form, the step has a {type(block).__name__}")
        return block.to_dict()

    if inner is list:
        if not isinstance(block, Grid):
            raise TypeError(f"Parameter '{parameter.name}' expects a grid, the step has a {type(block).__name__}")
        return block.rows_as_dicts()

    if not isinstance(block, inner):
        raise TypeError(
            f"Parameter '{parameter.name}' expects a {inner.__name__}, the step has a {type(block).__name__}"
        )

    return block


def match_all(matcher: StepMatcher, steps: List[Step]) -> List[MatchResult]:
    return [matcher.match(step) for step in steps]
