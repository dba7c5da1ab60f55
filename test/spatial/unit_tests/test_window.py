import numpy as np
import pytest

from spatialmif.spatial.window import ObservationWindow


def test_from_points():
    window = ObservationWindow.from_points(np.array([[1.0, 2.0], [4.0, 3.0], [2.0, 6.0]]))
    assert (window.xmin, window.xmax, window.ymin, window.ymax) == (1.0, 4.0, 2.0, 6.0)
    assert window.area == 12.0


def test_degenerate():
    with pytest.raises(ValueError):
        ObservationWindow(0.0, 0.0, 0.0, 1.0)
    with pytest.raises(ValueError):
        ObservationWindow.from_points(np.array([[1.0, 1.0], [1.0, 5.0]]))


def test_distances():
    window = ObservationWindow(0.0, 10.0, 0.0, 4.0)
    points = np.array([[1.0, 1.0], [5.0, 3.5]])
    assert np.allclose(window.edge_distances(points), [[9.0, 3.0, 1.0, 1.0], [5.0, 0.5, 5.0, 3.5]])
    assert np.allclose(window.border_distances(points), [1.0, 0.5])
    assert list(window.contains(np.array([[0.0, 0.0], [10.5, 1.0]]))) == [True, False]
