from math import pi

import numpy as np
import pytest
from numpy.random import default_rng

from spatialmif.spatial.window import ObservationWindow
from spatialmif.spatial.ripley import circle_fraction_inside
from spatialmif.spatial.ripley import ripley_k
from spatialmif.spatial.ripley import ripley_l
from spatialmif.spatial.ripley import nearest_neighbor_g
from spatialmif.spatial.ripley import cross_k
from spatialmif.spatial.ripley import cross_g
from spatialmif.spatial.ripley import lookup_summary_function
from spatialmif.standalone_utilities.errors import InsufficientPointsError
from spatialmif.standalone_utilities.errors import UnknownMethodError

UNIT_SQUARE = ObservationWindow(0.0, 1.0, 0.0, 1.0)


def uniform_points(count, seed):
    return default_rng(seed).uniform(0.0, 1.0, size=(count, 2))


def clustered_points(count, seed):
    rng = default_rng(seed)
    parents = rng.uniform(0.2, 0.8, size=(5, 2))
    points = parents[rng.integers(0, 5, size=count)] + rng.normal(0, 0.02, size=(count, 2))
    return np.clip(points, 0.0, 1.0)


def test_circle_fraction_inside():
    centres = np.array([[0.5, 0.5], [0.5, 0.0], [0.0, 0.0], [0.5, 0.5]])
    radii = np.array([0.1, 0.1, 0.1, 0.0])
    assert np.allclose(circle_fraction_inside(centres, radii, UNIT_SQUARE), [1.0, 0.5, 0.25, 1.0])


def test_circle_fraction_near_corner():
    centre = np.array([[0.1, 0.1]])
    fraction = circle_fraction_inside(centre, np.array([0.2]), UNIT_SQUARE)[0]
    alpha = np.arccos(0.5)
    expected = 1 - (4 * alpha - (2 * alpha - pi / 2)) / (2 * pi)
    assert fraction == pytest.approx(expected)


@pytest.mark.parametrize('correction', ['translation', 'isotropic', 'border'])
def test_k_under_complete_spatial_randomness(correction):
    points = uniform_points(1500, seed=11)
    radii = np.linspace(0.0, 0.15, 16)
    curve = ripley_k(points, radii=radii, window=UNIT_SQUARE, correction=correction)
    assert list(curve.columns) == ['r', 'observed', 'theoretical']
    assert curve['observed'].iloc[0] == 0.0
    relative = curve['observed'].iloc[5:] / curve['theoretical'].iloc[5:]
    assert np.all(np.abs(relative - 1) < 0.12)


def test_uncorrected_k_is_biased_low():
    points = uniform_points(1000, seed=2)
    radii = np.array([0.0, 0.1, 0.2])
    raw = ripley_k(points, radii=radii, window=UNIT_SQUARE, correction='none')
    corrected = ripley_k(points, radii=radii, window=UNIT_SQUARE, correction='translation')
    assert raw['observed'].iloc[2] < corrected['observed'].iloc[2]


def test_clustering_raises_k():
    points = clustered_points(500, seed=4)
    curve = ripley_l(points, radii=np.array([0.02, 0.05]), window=UNIT_SQUARE)
    assert np.all(curve['observed'] > curve['theoretical'])


def test_l_is_r_under_randomness():
    points = uniform_points(1500, seed=8)
    curve = ripley_l(points, radii=np.linspace(0.05, 0.15, 5), window=UNIT_SQUARE)
    assert np.allclose(curve['observed'], curve['r'], atol=0.01)


@pytest.mark.parametrize('correction', ['raw', 'rs'])
def test_g_under_randomness(correction):
    points = uniform_points(1000, seed=9)
    curve = nearest_neighbor_g(points, radii=np.linspace(0.0, 0.04, 9), window=UNIT_SQUARE, correction=correction)
    if correction == 'raw':
        assert np.all(np.diff(curve['observed']) >= 0)
    assert np.allclose(curve['observed'], curve['theoretical'], atol=0.06)


def test_cross_functions_of_independent_patterns():
    first = uniform_points(800, seed=21)
    second = uniform_points(800, seed=22)
    radii = np.linspace(0.05, 0.15, 5)
    k = cross_k(first, second, radii=radii, window=UNIT_SQUARE)
    assert np.all(np.abs(k['observed'] / k['theoretical'] - 1) < 0.12)
    g = cross_g(first, second, radii=np.linspace(0.0, 0.04, 5), window=UNIT_SQUARE)
    assert np.allclose(g['observed'], g['theoretical'], atol=0.06)


def test_default_radii_and_window():
    points = uniform_points(100, seed=1)
    curve = ripley_k(points)
    assert curve.shape[0] == 51
    assert curve['r'].iloc[0] == 0.0


def test_invalid_inputs():
    with pytest.raises(InsufficientPointsError):
        ripley_k(np.array([[0.5, 0.5]]), window=UNIT_SQUARE)
    with pytest.raises(UnknownMethodError):
        ripley_k(uniform_points(10, seed=1), window=UNIT_SQUARE, correction='periodic')
    with pytest.raises(UnknownMethodError):
        nearest_neighbor_g(uniform_points(10, seed=1), window=UNIT_SQUARE, correction='translation')
    with pytest.raises(ValueError):
        ripley_k(np.array([[0.5, 0.5], [1.5, 0.5]]), window=UNIT_SQUARE)
    with pytest.raises(ValueError):
        ripley_k(uniform_points(10, seed=1), radii=[0.1, 0.05], window=UNIT_SQUARE)
    with pytest.raises(UnknownMethodError):
        lookup_summary_function('F')


def test_border_k_of_three_points():
    points = np.array([[0.5, 0.5], [0.6, 0.5], [0.05, 0.5]])
    result = ripley_k(points, radii=[0.0, 0.2], window=UNIT_SQUARE, correction='border')
    # Only the first two points are at least 0.2 from the border, each with one neighbour.
    assert result['observed'].iloc[0] == pytest.approx(0.0)
    assert result['observed'].iloc[1] == pytest.approx(2 / (2 * 3.0))


def test_border_k_intensity_counts_all_points():
    points = uniform_points(40, 3)
    radii = np.array([0.0, 0.2])
    result = ripley_k(points, radii=radii, window=UNIT_SQUARE, correction='border')
    eligible = UNIT_SQUARE.border_distances(points) >= 0.2
    distances = np.linalg.norm(points[:, None, :] - points[None, :, :], axis=2)
    neighbours = ((distances <= 0.2) & (distances > 0)).sum(axis=1)
    expected = neighbours[eligible].sum() / (eligible.sum() * 40.0)
    assert result['observed'].iloc[1] == pytest.approx(expected)


def test_isotropic_k_of_three_points():
    points = np.array([[0.05, 0.5], [0.15, 0.5], [0.8, 0.8]])
    result = ripley_k(points, radii=[0.0, 0.2], window=UNIT_SQUARE, correction='isotropic')
    # The circle about the first point loses an arc of 2 arccos(0.5) to the left edge.
    weight_first = 1 / (1 - 2 * np.arccos(0.5) / (2 * pi))
    assert weight_first == pytest.approx(1.5)
    assert result['observed'].iloc[1] == pytest.approx((weight_first + 1.0) / (3 * 2))


def test_cross_border_k_centres_on_from_points():
    points_from = np.array([[0.5, 0.5], [0.05, 0.5]])
    points_to = np.array([[0.6, 0.5], [0.1, 0.5], [0.5, 0.9]])
    result = cross_k(points_from, points_to, radii=[0.0, 0.2], window=UNIT_SQUARE, correction='border')
    assert result['observed'].iloc[0] == pytest.approx(0.0)
    assert result['observed'].iloc[1] == pytest.approx(1 / (1 * 3.0))
