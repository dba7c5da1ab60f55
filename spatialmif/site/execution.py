"""Run the code cells of a chapter and capture what they print, return and draw."""
import ast
import base64
import traceback
from contextlib import redirect_stdout
from io import BytesIO
from io import StringIO
from typing import Any

import matplotlib
import matplotlib.pyplot as plt
from matplotlib.figure import Figure
from attrs import define
from attrs import field

from spatialmif.site.chapters import Chapter
from spatialmif.standalone_utilities.progress import FractionalProgressReporter
from spatialmif.standalone_utilities.log_formats import colorized_logger

logger = colorized_logger(__name__)

MAXIMUM_REPR_LENGTH = 5000


@define
class CellOutput:
    stdout: str = ''
    result: str | None = None
    result_html: str | None = None
    figures: list[str] = field(factory=list)
    error: str | None = None


@define
class ExecutedChapter:
    """``outputs`` has one entry per cell of the chapter: None for prose cells and for code cells
    after a failure."""
    chapter: Chapter
    outputs: list[CellOutput | None]
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


def execute_chapter(chapter: Chapter, namespace: dict[str, Any] | None = None) -> ExecutedChapter:
    """Runs the code cells in order in one namespace. The first exception stops the chapter: it
    is recorded as that cell's error output and the chapter's error."""
    matplotlib.use('Agg')
    plt.close('all')
    if namespace is None:
        namespace = {'__name__': '__main__'}
    outputs: list[CellOutput | None] = [None] * len(chapter.cells)
    progress = FractionalProgressReporter(len(chapter.code_cells()), task=f'chapter {chapter.stem}')
    executed = ExecutedChapter(chapter, outputs)
    for index, cell in enumerate(chapter.cells):
        if cell.kind != 'code':
            continue
        output = _run_cell(cell.source, namespace, f'<{chapter.stem} cell {index}>')
        outputs[index] = output
        if output.error is not None:
            logger.warning('Chapter "%s" stopped at cell %s:\n%s', chapter.title, index, output.error)
            executed.error = output.error
            break
        progress.increment()
    else:
        progress.done()
    return executed


def _run_cell(source: str, namespace: dict[str, Any], filename: str) -> CellOutput:
    output = CellOutput()
    stdout = StringIO()
    try:
        body, last = _split_trailing_expression(ast.parse(source, filename=filename))
        with redirect_stdout(stdout):
            exec(compile(body, filename, 'exec'), namespace)
            if last is not None:
                value = eval(compile(last, filename, 'eval'), namespace)
                if value is not None and not isinstance(value, Figure):
                    output.result = _short_repr(value)
                    output.result_html = _html_repr(value)
    except Exception:
        output.error = traceback.format_exc()
    output.stdout = stdout.getvalue()
    output.figures = _collect_figures()
    return output


def _split_trailing_expression(module: ast.Module) -> tuple[ast.Module, ast.Expression | None]:
    if len(module.body) > 0 and isinstance(module.body[-1], ast.Expr):
        last = ast.Expression(body=module.body[-1].value)
        body = ast.Module(body=module.body[:-1], type_ignores=[])
        return body, last
    return module, None


def _short_repr(value: Any) -> str:
    text = repr(value)
    if len(text) > MAXIMUM_REPR_LENGTH:
        text = text[:MAXIMUM_REPR_LENGTH] + '\n...'
    return text


def _html_repr(value: Any) -> str | None:
    method = getattr(value, '_repr_html_', None)
    if method is None or isinstance(value, type):
        return None
    return method()


def _collect_figures() -> list[str]:
    figures = []
    for number in plt.get_fignums():
        buffer = BytesIO()
        plt.figure(number).savefig(buffer, format='png', dpi=90, bbox_inches='tight')
        figures.append(base64.b64encode(buffer.getvalue()).decode('ascii'))
    plt.close('all')
    return figures
