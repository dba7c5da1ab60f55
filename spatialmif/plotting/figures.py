"""Figures used by the tutorial chapters. Each helper returns the matplotlib Figure it drew."""
from typing import Sequence

from pandas import DataFrame
import matplotlib.pyplot as plt
from matplotlib.figure import Figure
import seaborn as sns  # type: ignore

from spatialmif.datasets.tables import require_columns
from spatialmif.normalization.mx_dataset import MxDataset
from spatialmif.spatial.per_image import SummaryFunctionResult
from spatialmif.survival.fpca import FPCAResult
from spatialmif.survival.cox import KaplanMeierSplit


def plot_cells(
    table: DataFrame,
    image: str,
    phenotype_column: str = 'cell_type',
    image_column: str = 'image_id',
    coordinate_columns: tuple[str, str] = ('cell_x', 'cell_y'),
    figsize: tuple[float, float] = (7, 6),
) -> Figure:
    """Cell centroids of one image, coloured by phenotype."""
    require_columns(table, [phenotype_column, image_column, *coordinate_columns])
    cells = table[table[image_column] == image]
    if cells.shape[0] == 0:
        raise ValueError(f'No cells in image "{image}".')
    fig, ax = plt.subplots(1, 1, figsize=figsize)
    sns.scatterplot(data=cells, x=coordinate_columns[0], y=coordinate_columns[1], hue=phenotype_column,
                    s=9, linewidth=0, ax=ax)
    ax.set_aspect('equal')
    ax.set_title(str(image))
    ax.legend(loc='center left', bbox_to_anchor=(1.0, 0.5), frameon=False, title=phenotype_column)
    fig.tight_layout()
    return fig


def plot_summary_functions(
    result: SummaryFunctionResult | DataFrame,
    images: Sequence[str] | None = None,
    image_column: str = 'image_id',
    figsize: tuple[float, float] = (7, 5),
) -> Figure:
    """Observed curve of each image against the expected curve under spatial randomness (the
    permutation expectation where it was computed)."""
    title = None
    if isinstance(result, SummaryFunctionResult):
        image_column = result.image_column
        title = f'{result.summary} function, {result.mark} ({result.correction} correction)'
        result = result.table
    require_columns(result, [image_column, 'r', 'observed', 'theoretical'])
    if images is not None:
        result = result[result[image_column].isin(images)]
    expected_column = 'permuted' if 'permuted' in result.columns else 'theoretical'
    fig, ax = plt.subplots(1, 1, figsize=figsize)
    sns.lineplot(data=result, x='r', y='observed', hue=image_column, units=image_column, estimator=None,
                 linewidth=1, alpha=0.7, legend=images is not None, ax=ax)
    expected = result.groupby('r', sort=True)[expected_column].mean()
    ax.plot(expected.index, expected.to_numpy(), color='black', linestyle='--', label=f'{expected_column} expectation')
    ax.set_ylabel('value')
    if title is not None:
        ax.set_title(title)
    ax.legend(frameon=False, fontsize='small')
    fig.tight_layout()
    return fig


def plot_marker_densities(
    mx: MxDataset,
    marker: str,
    figsize: tuple[float, float] = (11, 4),
) -> Figure:
    """Per-slide density of one marker, raw beside normalized."""
    if marker not in mx.marker_columns:
        raise ValueError(f'"{marker}" is not a marker column.')
    tables = mx.tables('both')
    fig, axs = plt.subplots(1, len(tables), figsize=figsize, squeeze=False)
    for ax, (name, data) in zip(axs[0], tables):
        sns.kdeplot(data=data, x=marker, hue=mx.slide_column, common_norm=False, linewidth=1, legend=False,
                    warn_singular=False, ax=ax)
        ax.set_title(name if name == 'raw' else f'{name} ({mx.method})')
    fig.suptitle(marker)
    fig.tight_layout()
    return fig


def plot_discordance(
    otsu: MxDataset | DataFrame,
    figsize: tuple[float, float] = (9, 4),
) -> Figure:
    """Otsu discordance score of each slide, by marker, raw against normalized."""
    if isinstance(otsu, MxDataset):
        if otsu.otsu is None:
            raise ValueError('No Otsu discordance scores yet; call otsu_discordance first.')
        otsu = otsu.otsu
    require_columns(otsu, ['table', 'slide', 'marker', 'discordance'])
    fig, ax = plt.subplots(1, 1, figsize=figsize)
    sns.stripplot(data=otsu, x='marker', y='discordance', hue='table', dodge=True, size=4, ax=ax)
    ax.set_ylabel('discordance score')
    ax.legend(frameon=False)
    fig.tight_layout()
    return fig


def plot_umap(
    embedding: DataFrame,
    slide_column: str = 'slide_id',
    figsize: tuple[float, float] = (11, 5),
) -> Figure:
    require_columns(embedding, ['table', slide_column, 'UMAP1', 'UMAP2'])
    names = list(dict.fromkeys(embedding['table']))
    fig, axs = plt.subplots(1, len(names), figsize=figsize, squeeze=False)
    for ax, name in zip(axs[0], names):
        sns.scatterplot(data=embedding[embedding['table'] == name], x='UMAP1', y='UMAP2', hue=slide_column,
                        s=4, linewidth=0, legend=False, ax=ax)
        ax.set_title(name)
    fig.tight_layout()
    return fig


def plot_eigenfunctions(
    fpca: FPCAResult,
    n_components: int | None = None,
    figsize: tuple[float, float] = (7, 5),
) -> Figure:
    """Mean function and leading eigenfunctions, with each one's share of variance."""
    count = fpca.n_components if n_components is None else min(n_components, fpca.n_components)
    fig, axs = plt.subplots(1, 2, figsize=figsize, gridspec_kw={'width_ratios': [1, 2]})
    axs[0].plot(fpca.grid, fpca.mean_function, color='black')
    axs[0].set_title('mean')
    axs[0].set_xlabel('r')
    for k in range(count):
        axs[1].plot(fpca.grid, fpca.eigenfunctions[k], label=f'{fpca.scores.columns[k]} ({100 * fpca.pve[k]:.1f}%)')
    axs[1].axhline(0, color='grey', linewidth=0.5)
    axs[1].set_title('eigenfunctions')
    axs[1].set_xlabel('r')
    axs[1].legend(frameon=False, fontsize='small')
    fig.tight_layout()
    return fig


def plot_coefficient_function(coefficient_function: DataFrame, figsize: tuple[float, float] = (6, 4)) -> Figure:
    require_columns(coefficient_function, ['r', 'beta'])
    fig, ax = plt.subplots(1, 1, figsize=figsize)
    ax.plot(coefficient_function['r'], coefficient_function['beta'], color='tab:red')
    ax.axhline(0, color='grey', linewidth=0.5)
    ax.set_xlabel('r')
    ax.set_ylabel(r'$\beta(r)$')
    fig.tight_layout()
    return fig


def plot_kaplan_meier(split: KaplanMeierSplit, figsize: tuple[float, float] = (6, 4)) -> Figure:
    """Kaplan-Meier curves of both groups, with the log-rank p-value."""
    fig, ax = plt.subplots(1, 1, figsize=figsize)
    for fitter in split.fitters.values():
        fitter.plot_survival_function(ax=ax, ci_show=True)
    ax.set_ylabel('survival probability')
    ax.set_title(f'{split.covariate} split at {split.threshold:.3g}; log-rank p = {split.p_value:.3g}')
    ax.set_ylim(0, 1.05)
    fig.tight_layout()
    return fig

