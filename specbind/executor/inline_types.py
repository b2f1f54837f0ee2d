"""
Inline types: parameter types whose values can be written inside a step line.

Each inline type knows which Python types it handles, the regex fragment that
matches a value (with ``{0}`` standing for the capture group name) and how to
convert the captured text back into a value.
"""
import datetime
import decimal
import enum
import re
import types
import typing
from typing import Any, List, Optional, Tuple

from specbind.exceptions import UnsupportedTypeError
from specbind.parser.name_parser import parse_name

NULL_TOKEN = 'null'
_ordinal_suffix = re.compile(r'(?:st|nd|rd|th)$', re.IGNORECASE)
_union_types = tuple(t for t in (typing.Union, getattr(types, 'UnionType', None)) if t is not None)


def unwrap_optional(tp: Any) -> Tuple[Any, bool]:
    """Split ``Optional[T]`` (or ``T | None``) into ``(T, True)``; other types give ``(tp, False)``"""
    if typing.get_origin(tp) in _union_types:
        args = [arg for arg in typing.get_args(tp) if arg is not type(None)]
        if len(args) == 1 and len(args) < len(typing.get_args(tp)):
            return args[0], True
    return tp, False


def fill_group_name(pattern: str, name: str) -> str:
    return pattern.replace('{0}', name)


class InlineType:
    """Base class of the inline type strategies"""

    def handles_type(self, tp: Any) -> bool:
        raise NotImplementedError

    def get_pattern(self, tp: Any, nullable: bool = False) -> str:
        raise NotImplementedError

    def convert(self, value: str, tp: Any) -> Any:
        return tp(value)


class IntInlineType(InlineType):

    def handles_type(self, tp: Any) -> bool:
        return tp is int

    def get_pattern(self, tp: Any, nullable: bool = False) -> str:
        if nullable:
            return r'(?P<{0}>(?:[-+]?\d+)|(?:null))(?:st|nd|rd|th)?'

        return r'(?P<{0}>[-+]?\d+)(?:st|nd|rd|th)?'

    def convert(self, value: str, tp: Any) -> Any:
        return int(_ordinal_suffix.sub('', value))


class FloatInlineType(InlineType):

    def handles_type(self, tp: Any) -> bool:
        return tp in (float, decimal.Decimal)

    def get_pattern(self, tp: Any, nullable: bool = False) -> str:
        number = r'[-+]?(?:\d+(?:\.\d*)?|\.\d+)'
        if nullable:
            return r'(?P<{0}>(?:' + number + r')|(?:null))'

        return r'(?P<{0}>' + number + ')'

    def convert(self, value: str, tp: Any) -> Any:
        return tp(value)


class BoolInlineType(InlineType):
    TRUE_WORDS = ('true', 'yes', 'on')
    FALSE_WORDS = ('false', 'no', 'off')

    def handles_type(self, tp: Any) -> bool:
        return tp is bool

    def get_pattern(self, tp: Any, nullable: bool = False) -> str:
        words = list(self.TRUE_WORDS + self.FALSE_WORDS)
        if nullable:
            words.append(NULL_TOKEN)
        return '(?P<{0}>' + '|'.join(words) + ')'

    def convert(self, value: str, tp: Any) -> Any:
        return value.lower() in self.TRUE_WORDS


class EnumInlineType(InlineType):

    def handles_type(self, tp: Any) -> bool:
        return isinstance(tp, type) and issubclass(tp, enum.Enum)

    def get_pattern(self, tp: Any, nullable: bool = False) -> str:
        sub_patterns = []

        for name in tp.__members__:
            words = parse_name(name, False).split()
            sub_patterns.append('(?:' + r'\s*'.join(re.escape(word) for word in words) + ')')

        if nullable:
            sub_patterns.append('(?:null)')

        return '(?P<{0}>' + '|'.join(sub_patterns) + ')'

    def convert(self, value: str, tp: Any) -> Any:
        wanted = _squash(value)

        for name, member in tp.__members__.items():
            if _squash(parse_name(name, False)) == wanted:
                return member

        raise ValueError(f"'{value}' is not a member of {tp.__name__}")


class DateInlineType(InlineType):

    def handles_type(self, tp: Any) -> bool:
        return tp is datetime.date

    def get_pattern(self, tp: Any, nullable: bool = False) -> str:
        if nullable:
            return r'(?P<{0}>\d{4}-\d{2}-\d{2}|null)'

        return r'(?P<{0}>\d{4}-\d{2}-\d{2})'

    def convert(self, value: str, tp: Any) -> Any:
        return datetime.date.fromisoformat(value)


class StringInlineType(InlineType):

    def handles_type(self, tp: Any) -> bool:
        return tp is str

    def get_pattern(self, tp: Any, nullable: bool = False) -> str:
        return r'''(?P<{0}>"[^"]*"|'[^']*'|\S+)'''

    def convert(self, value: str, tp: Any) -> Any:
        if len(value) >= 2 and value[0] == value[-1] and value[0] in '"\'':
            return value[1:-1]
        return value


def _squash(text: str) -> str:
    return re.sub(r'\s+', '', text).lower()


class InlineTypeCatalog:
    """Ordered inline types; the first one that handles a type wins"""

    def __init__(self, inline_types: Optional[List[InlineType]] = None):
        if inline_types is None:
            inline_types = [
                IntInlineType(),
                FloatInlineType(),
                BoolInlineType(),
                EnumInlineType(),
                DateInlineType(),
                StringInlineType(),
            ]
        self.inline_types = list(inline_types)

    def register(self, inline_type: InlineType, first: bool = False) -> None:
        if first:
            self.inline_types.insert(0, inline_type)
        else:
            self.inline_types.append(inline_type)

    def find(self, tp: Any) -> Optional[InlineType]:
        inner, _ = unwrap_optional(tp)

        for inline_type in self.inline_types:
            if inline_type.handles_type(inner):
                return inline_type

        return None

    def handles_type(self, tp: Any) -> bool:
        return self.find(tp) is not None

    def get_pattern(self, tp: Any, name: str) -> str:
        """The regex fragment for ``tp`` with its capture group called ``name``"""
        inner, nullable = unwrap_optional(tp)
        inline_type = self.find(inner)

        if inline_type is None:
            raise UnsupportedTypeError(tp)

        return fill_group_name(inline_type.get_pattern(inner, nullable), name)

    def convert(self, value: Optional[str], tp: Any) -> Any:
        """Turn captured text into a value of ``tp``"""
        inner, nullable = unwrap_optional(tp)
        inline_type = self.find(inner)

        if inline_type is None:
            raise UnsupportedTypeError(tp)

        if value is None or (nullable and value.lower() == NULL_TOKEN):
            return None

        return inline_type.convert(value, inner)
