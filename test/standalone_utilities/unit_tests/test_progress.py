from spatialmif.standalone_utilities.progress import FractionalProgressReporter


def test_counts_and_skips():
    progress = FractionalProgressReporter(5, task='test loop')
    for item in ['a', 'b', 'c']:
        progress.increment(item)
    progress.skip('d', 'too few cells')
    progress.skip('e', 'too few cells')
    progress.done()
    assert progress.counter == 5
    assert progress.skipped == ['d', 'e']


def test_empty_loop():
    progress = FractionalProgressReporter(0, task='nothing')
    progress.done()
    assert progress.checkpoints == set()
