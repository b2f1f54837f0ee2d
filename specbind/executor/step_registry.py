"""
Step definition registry.

Step definitions are plain Python callables whose names read like the steps
they implement::

    def given_a_user_named_name(name: str):
        ...

The name becomes the phrase ``a user named name`` and every parameter whose
name appears in the phrase is replaced by a capture group for its type, so
the definition matches ``Given a user named "bob"``.
"""

import importlib.util
import inspect
import itertools
import re
import threading
import typing
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from specbind.exceptions import ConfigurationError, UnsupportedTypeError
from specbind.executor.inline_types import InlineTypeCatalog, unwrap_optional
from specbind.parser.blocks import Block, Form, Grid
from specbind.parser.models import StepType
from specbind.parser.name_parser import is_step_definition, parse_name, step_type_of
from specbind.utils.logger import setup_logger

logger = setup_logger(__name__)

STEP_TYPE_ATTRIBUTE = '__specbind_step_type__'
BLOCK_PARAMETER_NAMES = ('block', 'form', 'grid', 'table')
_BLOCK_ANNOTATIONS = (Block, Form, Grid, dict, list)


@dataclass
class Parameter:
    """One parameter of a step definition"""
    name: str
    type: Any = str
    has_default: bool = False

    @property
    def is_block(self) -> bool:
        """True if the parameter receives the step's Form/Grid instead of inline text"""
        if self.type is None:
            return self.name in BLOCK_PARAMETER_NAMES

        inner, _ = unwrap_optional(self.type)
        inner = typing.get_origin(inner) or inner
        return inner in _BLOCK_ANNOTATIONS


@dataclass
class StepDefinition:
    """A callable bound to a step type and the phrase derived from its name"""
    name: str
    step_type: StepType
    func: Callable
    parameters: List[Parameter] = field(default_factory=list)
    error: Optional[UnsupportedTypeError] = None
    _phrase: Optional[str] = field(default=None, repr=False, compare=False)
    _patterns: Optional[List[re.Pattern]] = field(default=None, repr=False, compare=False)
    _groups: Dict[str, str] = field(default_factory=dict, repr=False, compare=False)

    @property
    def phrase(self) -> str:
        if self._phrase is None:
            self._phrase = parse_name(self.name, True)
        return self._phrase

    @property
    def inline_parameters(self) -> List[Parameter]:
        return [p for p in self.parameters if not p.is_block]

    @property
    def block_parameters(self) -> List[Parameter]:
        return [p for p in self.parameters if p.is_block]

    @property
    def compiled(self) -> bool:
        return self._patterns is not None

    def group_name(self, parameter: Parameter) -> str:
        return self._groups[parameter.name]

    def compile(self, catalog: InlineTypeCatalog) -> List[re.Pattern]:
        """Build the matching regexes; called once and cached on the definition"""
        if self._patterns is None:
            patterns, groups = build_patterns(self.phrase, self.inline_parameters, catalog)
            self._groups = groups
            self._patterns = [re.compile(pattern, re.IGNORECASE) for pattern in patterns]
        return self._patterns

    def __call__(self, *args, **kwargs):
        return self.func(*args, **kwargs)


def build_patterns(phrase: str, parameters: Sequence[Parameter],
                   catalog: InlineTypeCatalog) -> Tuple[List[str], Dict[str, str]]:
    """
    Turn a phrase into anchored regexes.

    Runs of words spelling a parameter's name become that parameter's capture
    group. A name spelled more than once gives one pattern per placement,
    earliest placements first; parameters the phrase does not mention are
    appended at the end. Parameters with a default value may be left out of
    the step text.
    """
    groups = {}
    for index, parameter in enumerate(parameters):
        groups[parameter.name] = parameter.name if parameter.name.isidentifier() else f'arg{index}'

    words = phrase.split()
    lowered = [w.lower() for w in words]

    placements = []
    for parameter in parameters:
        name_words = [w.lower() for w in parse_name(parameter.name).split()]
        spans = [
            (start, start + len(name_words))
            for start in range(len(words) - len(name_words) + 1)
            if name_words and lowered[start:start + len(name_words)] == name_words
        ]
        placements.append(spans or [None])

    patterns = []
    for chosen in itertools.product(*placements):
        spans = sorted(span for span in chosen if span is not None)
        if any(left[1] > right[0] for left, right in zip(spans, spans[1:])):
            continue

        pattern = _assemble(words, parameters, chosen, groups, catalog)
        if pattern not in patterns:
            patterns.append(pattern)

    return patterns, groups


def _assemble(words, parameters, chosen, groups, catalog) -> str:
    starts = {span[0]: (parameter, span[1]) for parameter, span in zip(parameters, chosen) if span}
    parts = []
    i = 0

    while i < len(words):
        if i in starts:
            parameter, end = starts[i]
            parts.append((catalog.get_pattern(parameter.type, groups[parameter.name]), parameter.has_default))
            i = end
        else:
            parts.append((re.escape(words[i]), False))
            i += 1

    for parameter, span in zip(parameters, chosen):
        if span is None:
            parts.append((catalog.get_pattern(parameter.type, groups[parameter.name]), parameter.has_default))

    return r'^\s*' + _join(parts) + r'\s*$'


def _join(parts: List[Tuple[str, bool]]) -> str:
    """Join fragments with whitespace; optional fragments carry their separator"""
    pattern = ''

    for index, (fragment, optional) in enumerate(parts):
        if index == 0:
            pattern = f'(?:{fragment})?' if optional else fragment
        elif optional:
            pattern += rf'(?:\s+{fragment})?'
        elif index == 1 and parts[0][1]:
            # the optional first fragment took no separator
            pattern += r'\s*' + fragment
        else:
            pattern += r'\s+' + fragment

    return pattern


def _step_decorator(step_type: StepType):
    def decorator(func: Callable) -> Callable:
        setattr(func, STEP_TYPE_ATTRIBUTE, step_type)
        return func
    return decorator


given = _step_decorator(StepType.GIVEN)
when = _step_decorator(StepType.WHEN)
then = _step_decorator(StepType.THEN)


class StepRegistry:
    """Holds step definitions in registration order"""

    def __init__(self, catalog: Optional[InlineTypeCatalog] = None):
        self.catalog = catalog or InlineTypeCatalog()
        self.definitions: List[StepDefinition] = []
        self.invalid: List[StepDefinition] = []
        self._lock = threading.RLock()
        self._module_counter = 0

    def __len__(self) -> int:
        return len(self.definitions)

    def register(self, identifier: str, step_type: Optional[StepType],
                 parameters: Iterable, func: Callable) -> StepDefinition:
        """
        Register a step definition.

        ``parameters`` is an ordered sequence of ``(name, type)`` pairs or
        Parameter objects. When ``step_type`` is None it is taken from the
        identifier's given/when/then prefix.
        """
        if step_type is None:
            step_type = step_type_of(identifier)
        if step_type is StepType.UNKNOWN:
            raise ConfigurationError(
                f"Cannot tell whether '{identifier}' is a given, when or then step"
            )

        params = [p if isinstance(p, Parameter) else Parameter(name=p[0], type=p[1]) for p in parameters]
        definition = StepDefinition(name=identifier, step_type=step_type, func=func, parameters=params)

        for parameter in definition.inline_parameters:
            if not self.catalog.handles_type(parameter.type):
                definition.error = UnsupportedTypeError(parameter.type, identifier)
                logger.warning(f"{definition.error}; '{identifier}' will never match a step")
                break

        with self._lock:
            self.definitions.append(definition)
            if definition.error:
                self.invalid.append(definition)

        logger.debug(f"Registered {step_type.value} step: {definition.phrase}")
        return definition

    def register_function(self, func: Callable, step_type: Optional[StepType] = None,
                          name: Optional[str] = None) -> StepDefinition:
        """Register a function (or bound method) using its signature for the parameters"""
        name = name or func.__name__
        if step_type is None:
            step_type = getattr(func, STEP_TYPE_ATTRIBUTE, None)
        return self.register(name, step_type, function_parameters(func), func)

    def load_module(self, module) -> List[StepDefinition]:
        """Register the step definitions defined in a module, in source order"""
        loaded = []

        for item_name, item in list(vars(module).items()):
            if not inspect.isfunction(item) or item.__module__ != module.__name__:
                continue
            if is_step_definition(item_name) or hasattr(item, STEP_TYPE_ATTRIBUTE):
                loaded.append(self.register_function(item, name=item_name))

        logger.info(f"Loaded {len(loaded)} step definitions from {module.__name__}")
        return loaded

    def load_object(self, obj) -> List[StepDefinition]:
        """Register the step definition methods of an object, base classes first"""
        names = []
        for klass in reversed(type(obj).__mro__):
            for item_name in vars(klass):
                if item_name not in names and not item_name.startswith('_'):
                    names.append(item_name)

        loaded = []
        for item_name in names:
            member = getattr(obj, item_name)
            if not inspect.ismethod(member):
                continue
            if is_step_definition(item_name) or hasattr(member, STEP_TYPE_ATTRIBUTE):
                loaded.append(self.register_function(member, name=item_name))

        logger.info(f"Loaded {len(loaded)} step definitions from {type(obj).__name__}")
        return loaded

    def load_path(self, path) -> List[StepDefinition]:
        """Import a step module file, or every .py file of a directory, and register its steps"""
        path = Path(path)

        if path.is_dir():
            loaded = []
            for file_path in sorted(path.glob('*.py')):
                loaded.extend(self.load_path(file_path))
            return loaded

        if not path.exists():
            raise ConfigurationError(f"Step definition module not found: {path}")

        with self._lock:
            self._module_counter += 1
            module_name = f"specbind_steps_{self._module_counter}_{path.stem}"

        spec = importlib.util.spec_from_file_location(module_name, path)
        module = importlib.util.module_from_spec(spec)
        try:
            spec.loader.exec_module(module)
        except Exception as e:
            raise ConfigurationError(f"Cannot load step definitions from {path}: {e}") from e

        return self.load_module(module)

    def definitions_for(self, step_type: StepType) -> List[StepDefinition]:
        with self._lock:
            return [d for d in self.definitions if d.step_type is step_type]

    def patterns_for(self, definition: StepDefinition) -> List[re.Pattern]:
        """The definition's compiled patterns, built on first use"""
        if definition.compiled:
            return definition.compile(self.catalog)

        with self._lock:
            return definition.compile(self.catalog)

    def describe(self) -> Dict[str, List[str]]:
        """Phrases of the registered definitions grouped by step type"""
        described = {step_type.value: [] for step_type in (StepType.GIVEN, StepType.WHEN, StepType.THEN)}
        with self._lock:
            for definition in self.definitions:
                described[definition.step_type.value].append(definition.phrase)
        return described


def function_parameters(func: Callable) -> List[Parameter]:
    """Read the parameters of a callable; unannotated ones are strings unless named like a block"""
    try:
        hints = typing.get_type_hints(func)
    except NameError:
        hints = getattr(func, '__annotations__', {})

    parameters = []
    for parameter in inspect.signature(func).parameters.values():
        if parameter.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue

        if parameter.name in hints:
            tp = hints[parameter.name]
        elif parameter.name in BLOCK_PARAMETER_NAMES:
            tp = None
        else:
            tp = str

        parameters.append(Parameter(
            name=parameter.name,
            type=tp,
            has_default=parameter.default is not inspect.Parameter.empty,
        ))

    return parameters
