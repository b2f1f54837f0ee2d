"""Line extraction and language discovery for plain text specifications"""
import re
from typing import List

DEFAULT_LANGUAGE = 'en'

_language_regex = re.compile(r'#\s*language\s*:\s*(\S+)', re.IGNORECASE)


def discover_language(text: str, default: str = DEFAULT_LANGUAGE) -> str:
    """Return the code of the first `# language: <code>` directive, or the default."""
    match = _language_regex.search(text)

    if match:
        return match.group(1)

    return default


def get_lines(text: str) -> List[str]:
    """Return the trimmed lines that are neither empty nor comments"""
    lines = []

    for line in text.splitlines():
        line = line.strip()

        if line and not line.startswith('#'):
            lines.append(line)

    return lines
