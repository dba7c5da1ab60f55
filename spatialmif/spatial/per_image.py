"""Per-image summary functions bound into one long table."""
from typing import Any

import numpy as np
from numpy.typing import NDArray
from pandas import DataFrame
from pandas import Series
from pandas import concat
from pandas.api.types import is_bool_dtype
from pandas.api.types import is_numeric_dtype
from scipy.integrate import trapezoid  # type: ignore
from attrs import define
from attrs import field

from spatialmif.datasets.tables import require_columns
from spatialmif.spatial.ripley import default_correction
from spatialmif.spatial.ripley import lookup_summary_function
from spatialmif.spatial.permutation import permuted_expectation
from spatialmif.spatial.window import ObservationWindow
from spatialmif.standalone_utilities.progress import FractionalProgressReporter
from spatialmif.standalone_utilities.log_formats import colorized_logger

logger = colorized_logger(__name__)


@define
class SummaryFunctionResult:
    """Curves for all retained images in long format, plus the images that were skipped."""
    table: DataFrame
    skipped: list[str]
    summary: str
    correction: str
    mark: str
    radii: NDArray
    image_column: str = 'image_id'
    parameters: dict[str, Any] = field(factory=dict)

    def images(self) -> list[str]:
        return sorted(self.table[self.image_column].unique().tolist())


def summary_functions_by_image(
    table: DataFrame,
    mark_column: str,
    mark_value: Any = None,
    summary: str = 'K',
    radii=None,
    correction: str | None = None,
    image_column: str = 'image_id',
    coordinate_columns: tuple[str, str] = ('cell_x', 'cell_y'),
    min_cells: int = 20,
    permutations: int = 0,
    seed: int = 1,
) -> SummaryFunctionResult:
    """Univariate K, L or G function of the marked cells of each image.

    Cells are marked where ``mark_column`` equals ``mark_value``, or where it is true if
    ``mark_value`` is None. Images with fewer than ``min_cells`` marked cells, or whose cells
    span no area, are skipped. The window of an image is the bounding box of all of its cells.
    """
    require_columns(table, [mark_column, image_column, *coordinate_columns])
    table = table.reset_index(drop=True)
    correction = default_correction(summary) if correction is None else correction
    function = lookup_summary_function(summary)
    mask_all = _mark_mask(table[mark_column], mark_value).to_numpy()
    min_cells = max(min_cells, 2)
    mark = _describe_mark(mark_column, mark_value)
    groups = table.groupby(image_column, sort=True, observed=True)
    progress = FractionalProgressReporter(groups.ngroups, task=f'{summary} function of {mark}')
    retained = _retained_images(groups, [mask_all], coordinate_columns, min_cells, mark, progress)
    radii = _common_radii([window for _, _, window in retained], radii)
    coordinates = table[list(coordinate_columns)].to_numpy(dtype=float)
    curves = []
    for image, positions, window in retained:
        points = coordinates[positions]
        mask = mask_all[positions]
        curve = function(points[mask], radii=radii, window=window, correction=correction)
        expected = curve['theoretical'].to_numpy()
        if permutations > 0:
            curve['permuted'] = permuted_expectation(
                points, mask, summary, radii, window, correction, permutations, seed=seed,
            )
            expected = curve['permuted'].to_numpy()
        curve['fundiff'] = curve['observed'].to_numpy() - expected
        curve.insert(0, image_column, image)
        curves.append(curve)
        progress.increment(str(image))
    progress.done()
    return SummaryFunctionResult(
        _bind(curves, image_column, permutations),
        progress.skipped,
        summary,
        correction,
        mark,
        radii,
        image_column=image_column,
        parameters={'min_cells': min_cells, 'permutations': permutations, 'seed': seed},
    )


def cross_summary_functions_by_image(
    table: DataFrame,
    mark_column: str,
    from_value: Any,
    to_value: Any,
    summary: str = 'K',
    to_column: str | None = None,
    radii=None,
    correction: str | None = None,
    image_column: str = 'image_id',
    coordinate_columns: tuple[str, str] = ('cell_x', 'cell_y'),
    min_cells: int = 20,
    permutations: int = 0,
    seed: int = 1,
) -> SummaryFunctionResult:
    """Cross-type K, L or G function from cells with mark ``from_value`` to cells with mark
    ``to_value`` (read from ``to_column`` if given). Images where either type has fewer than
    ``min_cells`` cells, or whose cells span no area, are skipped.
    """
    to_column = mark_column if to_column is None else to_column
    require_columns(table, [mark_column, to_column, image_column, *coordinate_columns])
    table = table.reset_index(drop=True)
    correction = default_correction(summary) if correction is None else correction
    function = lookup_summary_function(summary, cross=True)
    mask_from_all = _mark_mask(table[mark_column], from_value).to_numpy()
    mask_to_all = _mark_mask(table[to_column], to_value).to_numpy()
    min_cells = max(min_cells, 1)
    mark = f'{_describe_mark(mark_column, from_value)} to {_describe_mark(to_column, to_value)}'
    groups = table.groupby(image_column, sort=True, observed=True)
    progress = FractionalProgressReporter(groups.ngroups, task=f'cross {summary} function of {mark}')
    retained = _retained_images(groups, [mask_from_all, mask_to_all], coordinate_columns, min_cells, mark,
                                progress)
    radii = _common_radii([window for _, _, window in retained], radii)
    coordinates = table[list(coordinate_columns)].to_numpy(dtype=float)
    curves = []
    for image, positions, window in retained:
        points = coordinates[positions]
        mask_from = mask_from_all[positions]
        mask_to = mask_to_all[positions]
        curve = function(points[mask_from], points[mask_to], radii=radii, window=window, correction=correction)
        expected = curve['theoretical'].to_numpy()
        if permutations > 0:
            curve['permuted'] = permuted_expectation(
                points, mask_from, summary, radii, window, correction, permutations, seed=seed,
                mask_to=mask_to,
            )
            expected = curve['permuted'].to_numpy()
        curve['fundiff'] = curve['observed'].to_numpy() - expected
        curve.insert(0, image_column, image)
        curves.append(curve)
        progress.increment(str(image))
    progress.done()
    return SummaryFunctionResult(
        _bind(curves, image_column, permutations),
        progress.skipped,
        summary,
        correction,
        mark,
        radii,
        image_column=image_column,
        parameters={'min_cells': min_cells, 'permutations': permutations, 'seed': seed, 'cross': True},
    )


def summarize_curves(
    curves: SummaryFunctionResult | DataFrame,
    value_column: str = 'fundiff',
    image_column: str = 'image_id',
) -> DataFrame:
    """Scalar summaries of each image's curve: trapezoidal area under the curve, and the value at
    the largest radius. Suitable as covariates of a Cox model.
    """
    if isinstance(curves, SummaryFunctionResult):
        image_column = curves.image_column
        curves = curves.table
    require_columns(curves, [image_column, 'r', value_column])
    rows = []
    for image, curve in curves.groupby(image_column, sort=True, observed=True):
        curve = curve.sort_values('r')
        valid = curve[value_column].notna()
        r = curve['r'][valid].to_numpy()
        values = curve[value_column][valid].to_numpy()
        rows.append({
            image_column: image,
            'auc': float(trapezoid(values, r)) if r.shape[0] > 1 else np.nan,
            'value_at_rmax': float(values[-1]) if values.shape[0] > 0 else np.nan,
        })
    return DataFrame(rows, columns=[image_column, 'auc', 'value_at_rmax'])


def _mark_mask(values: Series, mark_value: Any) -> Series:
    if mark_value is not None:
        return values == mark_value
    if is_bool_dtype(values) or is_numeric_dtype(values):
        return values.fillna(0).astype(bool)
    raise ValueError(f'Column "{values.name}" is not boolean; supply the mark value to select.')


def _describe_mark(column: str, value: Any) -> str:
    if value is None:
        return column
    return str(value)


def _retained_images(
    groups,
    masks: list[NDArray],
    coordinate_columns: tuple[str, str],
    min_cells: int,
    mark: str,
    progress: FractionalProgressReporter,
) -> list[tuple[Any, NDArray, ObservationWindow]]:
    """Images with at least ``min_cells`` cells of each mask and a bounding box of positive area,
    with the row positions of their cells and their windows. Other images are skipped."""
    retained = []
    for image, cells in groups:
        positions = cells.index.to_numpy()
        counts = [int(mask[positions].sum()) for mask in masks]
        if min(counts) < min_cells:
            described = f'{counts[0]} {mark} cells' if len(counts) == 1 else f'cell counts {tuple(counts)}'
            progress.skip(str(image), f'{described}, fewer than {min_cells}')
            continue
        points = cells[list(coordinate_columns)].to_numpy(dtype=float)
        extent = points.max(axis=0) - points.min(axis=0)
        if not np.all(extent > 0):
            progress.skip(str(image), 'cells span no area')
            continue
        retained.append((image, positions, ObservationWindow.from_points(points)))
    return retained


def _common_radii(windows: list[ObservationWindow], radii) -> NDArray:
    """The given radii, or 51 radii up to a quarter of the shortest window side over the retained
    images, so that every image's curve shares one grid.
    """
    if radii is not None:
        return np.asarray(radii, dtype=float)
    if len(windows) == 0:
        return np.zeros(0)
    shortest = min(min(window.width, window.height) for window in windows)
    return np.linspace(0.0, 0.25 * shortest, 51)


def _bind(curves: list[DataFrame], image_column: str, permutations: int) -> DataFrame:
    if len(curves) > 0:
        return concat(curves, ignore_index=True)
    columns = [image_column, 'r', 'observed', 'theoretical']
    if permutations > 0:
        columns.append('permuted')
    return DataFrame(columns=columns + ['fundiff'])
