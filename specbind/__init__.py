"""Plain text Given/When/Then specifications bound to Python step definitions"""
from specbind.exceptions import (
    ConfigurationError,
    InvocationError,
    ParseError,
    SpecbindError,
    UndefinedStepError,
    UnsupportedTypeError,
)
from specbind.executor.inline_types import InlineType, InlineTypeCatalog
from specbind.executor.step_matcher import MatchResult, StepMatcher
from specbind.executor.step_registry import StepRegistry, given, then, when
from specbind.executor.test_executor import ScenarioResult, SpecRunner, StepStatus
from specbind.parser.blocks import Block, Form, Grid
from specbind.parser.feature_parser import FeatureParser, parse_text
from specbind.parser.languages import Language, LanguageTable
from specbind.parser.models import Feature, Scenario, SpecificationDocument, Step, StepType
from specbind.parser.name_parser import parse_name

__version__ = "1.0.0"

__all__ = [
    'Block', 'ConfigurationError', 'Feature', 'FeatureParser', 'Form', 'Grid', 'InlineType',
    'InlineTypeCatalog', 'InvocationError', 'Language', 'LanguageTable', 'MatchResult', 'ParseError',
    'Scenario', 'ScenarioResult', 'SpecbindError', 'SpecificationDocument', 'SpecRunner', 'Step',
    'StepMatcher', 'StepRegistry', 'StepStatus', 'StepType', 'UndefinedStepError',
    'UnsupportedTypeError', 'given', 'parse_name', 'parse_text', 'then', 'when',
]
