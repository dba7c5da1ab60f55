"""The tutorial website: chapters, their execution, and rendering to static HTML."""
from spatialmif.site.chapters import Chapter
from spatialmif.site.chapters import Cell
from spatialmif.site.chapters import parse_chapter
from spatialmif.site.execution import execute_chapter
from spatialmif.site.render import render_site
