"""Tutorial chapters: Python scripts in the percent cell format.

A line ``# %% [markdown]`` starts a prose cell, whose lines are Markdown behind a comment prefix.
A line ``# %%`` starts a code cell. Anything before the first marker is a code cell.
"""
import re
from os import listdir
from os.path import basename
from os.path import join
from os.path import splitext

from attrs import define
from attrs import field

from spatialmif.standalone_utilities.log_formats import colorized_logger

logger = colorized_logger(__name__)

CELL_MARKER = re.compile(r'^# %%(?P<rest>.*)$')
MARKDOWN_TAG = '[markdown]'
MARKDOWN_KIND = 'markdown'
CODE_KIND = 'code'


@define
class Cell:
    kind: str
    source: str


@define
class Chapter:
    path: str
    title: str
    cells: list[Cell] = field(factory=list)

    @property
    def stem(self) -> str:
        return splitext(basename(self.path))[0]

    def code_cells(self) -> list[Cell]:
        return [cell for cell in self.cells if cell.kind == CODE_KIND]


def parse_chapter(path: str) -> Chapter:
    with open(path, 'rt', encoding='utf-8') as file:
        lines = file.read().splitlines()
    cells = []
    kind = CODE_KIND
    buffer: list[str] = []
    for line in lines:
        match = CELL_MARKER.match(line)
        if match is None:
            buffer.append(line)
            continue
        _append_cell(cells, kind, buffer)
        kind = MARKDOWN_KIND if MARKDOWN_TAG in match.group('rest') else CODE_KIND
        buffer = []
    _append_cell(cells, kind, buffer)
    chapter = Chapter(path, _find_title(cells, path), cells)
    logger.debug('Parsed %s: %s cells.', basename(path), len(cells))
    return chapter


def list_chapters(directory: str) -> list[str]:
    """Chapter files of a directory, in file name order."""
    names = sorted(
        name for name in listdir(directory)
        if name.endswith('.py') and not name.startswith('_')
    )
    return [join(directory, name) for name in names]


def _append_cell(cells: list[Cell], kind: str, lines: list[str]) -> None:
    if kind == MARKDOWN_KIND:
        lines = [_uncomment(line) for line in lines]
    source = '\n'.join(lines).strip('\n')
    if source.strip() == '':
        return
    cells.append(Cell(kind, source))


def _uncomment(line: str) -> str:
    if line.startswith('# '):
        return line[2:]
    if line.startswith('#'):
        return line[1:]
    return line


def _find_title(cells: list[Cell], path: str) -> str:
    for cell in cells:
        if cell.kind != MARKDOWN_KIND:
            continue
        for line in cell.source.splitlines():
            if line.startswith('#'):
                return line.lstrip('#').strip()
    return splitext(basename(path))[0]
