"""Static HTML site from the executed tutorial chapters."""
import importlib.resources
from os import makedirs
from os.path import join

from jinja2 import Environment
from jinja2 import PackageLoader
from jinja2 import select_autoescape
import markdown  # type: ignore

from spatialmif.site.chapters import parse_chapter
from spatialmif.site.chapters import list_chapters
from spatialmif.site.execution import ExecutedChapter
from spatialmif.site.execution import execute_chapter
from spatialmif.standalone_utilities.configuration_settings import TutorialSettings
from spatialmif.standalone_utilities.progress import FractionalProgressReporter
from spatialmif.standalone_utilities.log_formats import colorized_logger

logger = colorized_logger(__name__)

MARKDOWN_EXTENSIONS = ['fenced_code', 'tables']


def default_chapters_directory() -> str:
    return str(importlib.resources.files('spatialmif.site').joinpath('chapters'))


def render_site(
    chapters_directory: str | None = None,
    output_directory: str | None = None,
    title: str | None = None,
) -> list[str]:
    """Executes every chapter and writes ``<stem>.html`` for each plus ``index.html``. Returns
    the written paths. Chapters that fail still get a page, showing the error where it occurred.
    """
    settings = TutorialSettings.from_file()
    chapters_directory = default_chapters_directory() if chapters_directory is None else chapters_directory
    output_directory = settings.output_directory if output_directory is None else output_directory
    title = settings.title if title is None else title
    paths = list_chapters(chapters_directory)
    if len(paths) == 0:
        raise FileNotFoundError(f'No chapters in {chapters_directory}')
    makedirs(output_directory, exist_ok=True)
    environment = _create_environment()
    chapters = [parse_chapter(path) for path in paths]
    progress = FractionalProgressReporter(len(chapters), task='rendering chapters', parts=len(chapters))
    written = []
    failed = []
    for index, chapter in enumerate(chapters):
        executed = execute_chapter(chapter)
        if not executed.succeeded:
            failed.append(chapter.stem)
        page = environment.get_template('page.html.jinja').render(
            site_title=title,
            chapter=chapter,
            cells=_cell_contexts(executed),
            previous=chapters[index - 1] if index > 0 else None,
            next=chapters[index + 1] if index + 1 < len(chapters) else None,
        )
        written.append(_write(join(output_directory, f'{chapter.stem}.html'), page))
        progress.increment(chapter.stem)
    progress.done()
    index_page = environment.get_template('index.html.jinja').render(
        site_title=title,
        chapters=chapters,
        failed=failed,
    )
    written.append(_write(join(output_directory, 'index.html'), index_page))
    if len(failed) > 0:
        logger.warning('Chapters with errors: %s', failed)
    logger.info('Wrote %s pages to %s', len(written), output_directory)
    return written


def render_markdown(text: str) -> str:
    return markdown.markdown(text, extensions=MARKDOWN_EXTENSIONS)


def _create_environment() -> Environment:
    return Environment(
        loader=PackageLoader('spatialmif.site', 'templates'),
        autoescape=select_autoescape(['html', 'jinja']),
    )


def _cell_contexts(executed: ExecutedChapter) -> list[dict]:
    contexts = []
    for cell, output in zip(executed.chapter.cells, executed.outputs):
        context = {'kind': cell.kind, 'source': cell.source, 'output': output}
        if cell.kind == 'markdown':
            context['html'] = render_markdown(cell.source)
        contexts.append(context)
    return contexts


def _write(path: str, contents: str) -> str:
    with open(path, 'wt', encoding='utf-8') as file:
        file.write(contents)
    logger.debug('Wrote %s', path)
    return path

