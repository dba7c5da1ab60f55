"""Otsu discordance: how differently slides would be thresholded on their own versus together.

For a marker and a slide, cells are classified positive or negative twice: at the Otsu threshold
of that slide alone, and at the Otsu threshold of all slides pooled. The discordance score is the
fraction of the slide's cells on which the two classifications disagree. Good normalization
brings the slides onto a common scale, so that the scores shrink.
"""
from typing import Callable

import numpy as np
from numpy.typing import NDArray
from pandas import DataFrame
from skimage.filters import threshold_otsu  # type: ignore

from spatialmif.normalization.mx_dataset import MxDataset
from spatialmif.standalone_utilities.log_formats import colorized_logger

logger = colorized_logger(__name__)

ThresholdFunction = Callable[[NDArray], float]

COLUMNS = ['table', 'slide', 'marker', 'slide_threshold', 'global_threshold', 'discordance']


def otsu_discordance(
    mx: MxDataset,
    table: str = 'both',
    threshold: ThresholdFunction | None = None,
) -> DataFrame:
    """Computes discordance scores for every marker and slide of the raw and/or normalized table,
    stores them on ``mx.otsu`` and returns them. ``threshold`` replaces Otsu's method if given.
    """
    threshold_function = _otsu if threshold is None else threshold
    rows = []
    for name, data in mx.tables(table):
        slides = data[mx.slide_column].astype(str)
        for marker in mx.marker_columns:
            values = data[marker].to_numpy(dtype=float)
            global_threshold = _safe_threshold(threshold_function, values)
            if np.isnan(global_threshold):
                logger.warning('%s is constant over all slides (%s table); global threshold '
                               'undefined, discordance undefined.', marker, name)
            for slide in sorted(slides.unique()):
                slide_values = values[(slides == slide).to_numpy()]
                slide_values = slide_values[np.isfinite(slide_values)]
                slide_threshold = _safe_threshold(threshold_function, slide_values)
                if np.isnan(global_threshold):
                    score = np.nan
                elif np.isnan(slide_threshold):
                    logger.warning('%s is constant on slide %s (%s table); slide threshold '
                                   'undefined, discordance undefined.', marker, slide, name)
                    score = np.nan
                else:
                    score = float(np.mean((slide_values > slide_threshold) != (slide_values > global_threshold)))
                rows.append((name, slide, marker, slide_threshold, global_threshold, score))
    result = DataFrame(rows, columns=COLUMNS)
    mx.otsu = result
    return result


def summarize_discordance(otsu: MxDataset | DataFrame) -> DataFrame:
    """Mean discordance per table and marker, lower meaning better agreement between slides."""
    if isinstance(otsu, MxDataset):
        if otsu.otsu is None:
            raise ValueError('No Otsu discordance scores yet; call otsu_discordance first.')
        otsu = otsu.otsu
    summary = otsu.groupby(['table', 'marker'], sort=True)['discordance'].agg(['mean', 'std'])
    return summary.rename(columns={'mean': 'mean_discordance', 'std': 'sd_discordance'}).reset_index()


def _otsu(values: NDArray) -> float:
    return float(threshold_otsu(values))


def _safe_threshold(threshold_function: ThresholdFunction, values: NDArray) -> float:
    values = values[np.isfinite(values)]
    if np.unique(values).shape[0] < 2:
        return float('nan')
    return float(threshold_function(values))
