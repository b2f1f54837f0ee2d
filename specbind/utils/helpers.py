"""Helper utilities"""
import re
from typing import Dict, Any

_PUNCTUATION = re.compile(r'[^\w\s]', re.UNICODE)


def make_identifier(name: str) -> str:
    """Turn free text such as a scenario name into a Python identifier"""
    name = _PUNCTUATION.sub('', name).strip()
    name = re.sub(r'\s+', '_', name)

    if not name:
        return '_'

    if name[0].isdigit():
        name = '_' + name

    return name


def make_class_name(name: str) -> str:
    """Turn free text into a PascalCase class name"""
    words = [word for word in make_identifier(name).split('_') if word]
    result = ''.join(word[0].upper() + word[1:] for word in words)
    if not result or result[0].isdigit():
        result = '_' + result
    return result


def deep_get(dictionary: Dict, keys: str, default: Any = None) -> Any:
    """Get nested dictionary value using dot notation"""
    value = dictionary

    for key in keys.split('.'):
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default

    return value
