"""
Tabular blocks attached to steps.

A Form is a run of ``: name : value`` lines, a Grid is a header row followed
by data rows written as ``| a | b |``::

    Given the following order
      : product  : widget
      : quantity : 3
    When the stock is
      | product | quantity |
      | widget  | 10       |
"""
import re
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from specbind.exceptions import ParseError

_form_line = re.compile(r'^:\s*(?P<name>[^:]+?)\s*:\s*(?P<value>.*?)\s*$')
_grid_line = re.compile(r'^\|(?P<cells>.*)\|$')
_cell_separator = re.compile(r'(?<!\\)\|')


class Block:
    """Base class of the payloads a step can carry"""

    @property
    def size(self) -> int:
        """Number of text lines the block occupied"""
        raise NotImplementedError


@dataclass
class Form(Block):
    """Ordered name/value pairs"""
    fields: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def __iter__(self) -> Iterator[Tuple[str, str]]:
        return iter(self.fields)

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Value of the first field with this name, compared case-insensitively"""
        for key, value in self.fields:
            if key.lower() == name.lower():
                return value
        return default

    def to_dict(self) -> Dict[str, str]:
        return dict(self.fields)


@dataclass
class Grid(Block):
    """A header row and data rows of the same width"""
    header: List[str] = field(default_factory=list)
    rows: List[List[str]] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.rows) + 1

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[List[str]]:
        return iter(self.rows)

    def column(self, name: str) -> List[str]:
        try:
            index = [column.lower() for column in self.header].index(name.lower())
        except ValueError:
            raise KeyError(name) from None
        return [row[index] for row in self.rows]

    def rows_as_dicts(self) -> List[Dict[str, str]]:
        return [dict(zip(self.header, row)) for row in self.rows]


def is_form_line(line: str) -> bool:
    return bool(_form_line.match(line))


def is_grid_line(line: str) -> bool:
    return bool(_grid_line.match(line))


def next_line_is_form(lines: List[str], index: int) -> bool:
    """True if the line after ``index`` starts a form"""
    return index + 1 < len(lines) and is_form_line(lines[index + 1])


def next_line_is_grid(lines: List[str], index: int) -> bool:
    """True if the lines after ``index`` hold a header row and at least one data row"""
    return (index + 2 < len(lines)
            and is_grid_line(lines[index + 1])
            and is_grid_line(lines[index + 2]))


def parse_form(lines: List[str], start: int) -> Form:
    """Read form lines from ``start`` up to the first line that is not one"""
    form = Form()

    for line in lines[start:]:
        match = _form_line.match(line)
        if not match:
            break
        form.fields.append((match.group('name'), match.group('value')))

    return form


def split_cells(line: str) -> List[str]:
    match = _grid_line.match(line)
    if not match:
        raise ParseError(f'Not a grid row: "{line}"', line)

    return [cell.strip().replace('\\|', '|') for cell in _cell_separator.split(match.group('cells'))]


def parse_grid(lines: List[str], start: int) -> Grid:
    """Read a header row at ``start`` and every following row"""
    grid = Grid(header=split_cells(lines[start]))

    for line in lines[start + 1:]:
        if not is_grid_line(line):
            break

        cells = split_cells(line)
        if len(cells) != len(grid.header):
            raise ParseError(
                f'Grid row has {len(cells)} cells but the header has {len(grid.header)}: "{line}"',
                line,
            )
        grid.rows.append(cells)

    return grid


def parse_block(lines: List[str], index: int) -> Tuple[Optional[Block], int]:
    """
    Parse the block following the step at ``index``.

    Returns the block (or None) and how many lines it consumed.
    """
    if next_line_is_form(lines, index):
        form = parse_form(lines, index + 1)
        return form, form.size

    if next_line_is_grid(lines, index):
        grid = parse_grid(lines, index + 1)
        return grid, grid.size

    return None, 0
