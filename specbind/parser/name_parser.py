"""Turns step-definition names into readable phrases"""
import re
from typing import List

from specbind.parser.models import StepType

_step_definition_tester = re.compile(r'^([Gg]iven|[Ww]hen|[Tt]hen)(_|[A-Z])')
_underscore_splitter = re.compile(r'_+')
_camel_case_splitter = re.compile(r'(?<!^)(?=[A-Z])')
_prefix_remover = re.compile(r'^(given|when|then) ', re.IGNORECASE)


def split_words(name: str) -> List[str]:
    """Split on runs of underscores when present, otherwise before each capital letter"""
    if '_' in name:
        return _underscore_splitter.split(name.strip('_'))

    return _camel_case_splitter.split(name)


def parse_name(name: str, remove_prefix: bool = False) -> str:
    """
    Parse an identifier into a phrase.

    ``given_a_user`` becomes ``given a user`` and ``GivenAUser`` becomes
    ``Given A User``. With ``remove_prefix`` a leading given/when/then word is
    dropped and the result lower-cased.
    """
    if name is None:
        raise ValueError("name must not be None")

    result = ' '.join(split_words(name))

    if remove_prefix:
        result = _prefix_remover.sub('', result).lower()

    return result


def is_step_definition(name: str) -> bool:
    """True if the name starts with given, when or then followed by _ or a capital"""
    return bool(_step_definition_tester.match(name))


def step_type_of(name: str) -> StepType:
    match = _step_definition_tester.match(name)

    if not match:
        return StepType.UNKNOWN

    return StepType(match.group(1).lower())
