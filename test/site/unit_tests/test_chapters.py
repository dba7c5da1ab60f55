import pytest

from spatialmif.site.chapters import parse_chapter
from spatialmif.site.chapters import list_chapters
from spatialmif.site.render import default_chapters_directory

CHAPTER = '''import math

# %% [markdown]
# # Circles
#
# The area of a disc is $\\pi r^2$.

# %%
radius = 2
area = math.pi * radius ** 2

# %%

# %% [markdown]
# Done.
'''


def test_parse(tmp_path):
    path = tmp_path / '03_circles.py'
    path.write_text(CHAPTER)
    chapter = parse_chapter(str(path))
    assert chapter.title == 'Circles'
    assert chapter.stem == '03_circles'
    assert [cell.kind for cell in chapter.cells] == ['code', 'markdown', 'code', 'markdown']
    assert chapter.cells[0].source == 'import math'
    assert chapter.cells[1].source.startswith('# Circles\n\nThe area')
    assert len(chapter.code_cells()) == 2


def test_title_falls_back_to_stem(tmp_path):
    path = tmp_path / 'untitled.py'
    path.write_text('x = 1\n')
    assert parse_chapter(str(path)).title == 'untitled'


def test_list_chapters(tmp_path):
    for name in ['02_b.py', '01_a.py', '_helpers.py', 'notes.txt']:
        (tmp_path / name).write_text('')
    assert [p.split('/')[-1] for p in list_chapters(str(tmp_path))] == ['01_a.py', '02_b.py']


def test_packaged_chapters():
    paths = list_chapters(default_chapters_directory())
    assert len(paths) == 5
    for path in paths:
        chapter = parse_chapter(path)
        assert chapter.title != chapter.stem
        assert len(chapter.code_cells()) > 0
