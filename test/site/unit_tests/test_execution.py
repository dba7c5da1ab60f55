from spatialmif.site.chapters import Cell
from spatialmif.site.chapters import Chapter
from spatialmif.site.execution import execute_chapter


def chapter(*cells):
    return Chapter('/tmp/00_test.py', 'Test', [Cell(kind, source) for kind, source in cells])


def test_outputs_are_captured():
    executed = execute_chapter(chapter(
        ('markdown', '# Test'),
        ('code', 'x = 2\nprint("hello")\nx * 21'),
        ('code', 'import matplotlib.pyplot as plt\nfig, ax = plt.subplots()\nax.plot([0, 1], [x, x])\nfig'),
        ('code', 'import pandas as pd\npd.DataFrame({"a": [x]})'),
    ))
    assert executed.succeeded
    prose, first, second, third = executed.outputs
    assert prose is None
    assert first.stdout == 'hello\n'
    assert first.result == '42'
    assert first.figures == []
    assert second.result is None
    assert len(second.figures) == 1
    assert third.result_html is not None and '<table' in third.result_html


def test_error_stops_chapter():
    executed = execute_chapter(chapter(
        ('code', 'y = 1'),
        ('code', 'print("before")\nraise RuntimeError("broken cell")'),
        ('code', 'print("never")'),
    ))
    assert not executed.succeeded
    assert 'RuntimeError: broken cell' in executed.error
    assert executed.outputs[1].stdout == 'before\n'
    assert executed.outputs[1].error == executed.error
    assert executed.outputs[2] is None


def test_shared_namespace():
    namespace = {'__name__': '__main__', 'offset': 10}
    executed = execute_chapter(chapter(('code', 'offset + 1')), namespace=namespace)
    assert executed.outputs[0].result == '11'
