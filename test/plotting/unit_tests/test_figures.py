import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
from matplotlib.figure import Figure
import numpy as np
import pytest
from numpy.random import default_rng
from pandas import DataFrame

from spatialmif.datasets.reshaping import cell_table
from spatialmif.datasets.simulation import simulate_cohort
from spatialmif.spatial.per_image import summary_functions_by_image
from spatialmif.normalization.mx_dataset import MxDataset
from spatialmif.normalization.methods import normalize
from spatialmif.normalization.discordance import otsu_discordance
from spatialmif.survival.fpca import run_fpca
from spatialmif.survival.cox import kaplan_meier_by_split
from spatialmif.plotting import plot_cells
from spatialmif.plotting import plot_summary_functions
from spatialmif.plotting import plot_marker_densities
from spatialmif.plotting import plot_discordance
from spatialmif.plotting import plot_umap
from spatialmif.plotting import plot_eigenfunctions
from spatialmif.plotting import plot_coefficient_function
from spatialmif.plotting import plot_kaplan_meier


@pytest.fixture(scope='module')
def cells():
    return cell_table(simulate_cohort(n_patients=2, images_per_patient=1, cells_per_image=200, seed=4))


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close('all')


def test_cells(cells):
    image = cells['image_id'].iloc[0]
    assert isinstance(plot_cells(cells, image), Figure)
    with pytest.raises(ValueError):
        plot_cells(cells, 'no such image')


def test_summary_functions(cells):
    result = summary_functions_by_image(cells, 'cell_type', 'tumor', summary='L', min_cells=10)
    assert isinstance(plot_summary_functions(result), Figure)
    assert isinstance(plot_summary_functions(result.table, images=result.images()[:1]), Figure)


def test_normalization_figures(cells):
    markers = ['CD3', 'CD8', 'CK']
    mx = MxDataset.from_table(cells, 'slide_id', 'image_id', markers)
    normalize(mx, 'mean_divide')
    assert isinstance(plot_marker_densities(mx, markers[0]), Figure)
    with pytest.raises(ValueError):
        plot_marker_densities(mx, 'slide_id')
    with pytest.raises(ValueError):
        plot_discordance(mx)
    otsu_discordance(mx)
    assert isinstance(plot_discordance(mx), Figure)
    rng = default_rng(0)
    embedding = DataFrame({
        'table': ['raw'] * 20 + ['normalized'] * 20,
        'slide_id': ['a', 'b'] * 20,
        'UMAP1': rng.normal(size=40),
        'UMAP2': rng.normal(size=40),
    })
    assert isinstance(plot_umap(embedding), Figure)


def test_functional_figures():
    grid = np.linspace(0, 10, 11)
    rng = default_rng(1)
    curves = DataFrame(rng.normal(size=(8, 1)) * np.sin(grid) + rng.normal(size=(8, 1)) * grid, columns=grid)
    fpca = run_fpca(curves, pve=1.0)
    assert isinstance(plot_eigenfunctions(fpca), Figure)
    beta = DataFrame({'r': grid, 'beta': fpca.coefficient_function(np.ones(fpca.n_components))})
    assert isinstance(plot_coefficient_function(beta), Figure)


def test_kaplan_meier():
    rng = default_rng(2)
    x = rng.normal(size=60)
    frame = DataFrame({'x': x, 'days': rng.exponential(np.exp(-x)), 'status': np.ones(60, dtype=bool)})
    split = kaplan_meier_by_split(frame, 'x', 'days', 'status')
    assert isinstance(plot_kaplan_meier(split), Figure)
