"""Share of marker intensity variance attributable to slides, from random-intercept models."""
import warnings

import numpy as np
from pandas import DataFrame
from statsmodels.regression.mixed_linear_model import MixedLM  # type: ignore
from statsmodels.tools.sm_exceptions import ConvergenceWarning  # type: ignore

from spatialmif.normalization.mx_dataset import MxDataset
from spatialmif.standalone_utilities.log_formats import colorized_logger

logger = colorized_logger(__name__)

COLUMNS = ['table', 'marker', 'slide_variance', 'residual_variance', 'proportion']


def variance_proportions(mx: MxDataset, table: str = 'both') -> DataFrame:
    """For each marker, fits value ~ 1 + (1 | slide) by REML and reports the slide variance
    component, the residual variance, and the slide share of their total. A well normalized
    dataset has small slide shares.
    """
    rows = []
    for name, data in mx.tables(table):
        groups = data[mx.slide_column].astype(str).to_numpy()
        if np.unique(groups).shape[0] < 2:
            logger.warning('Only one slide; slide variance cannot be estimated.')
            rows.extend((name, marker, np.nan, np.nan, np.nan) for marker in mx.marker_columns)
            continue
        for marker in mx.marker_columns:
            rows.append((name, marker, *_fit_one(data[marker].to_numpy(dtype=float), groups, marker, name)))
    result = DataFrame(rows, columns=COLUMNS)
    mx.variance = result
    return result


def _fit_one(values, groups, marker: str, name: str) -> tuple[float, float, float]:
    finite = np.isfinite(values)
    values = values[finite]
    groups = groups[finite]
    if np.unique(values).shape[0] < 2:
        logger.warning('%s is constant in the %s table; skipping.', marker, name)
        return (np.nan, np.nan, np.nan)
    exog = np.ones((values.shape[0], 1))
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter('always', ConvergenceWarning)
        fit = MixedLM(values, exog, groups=groups).fit(reml=True)
    for warning in caught:
        if issubclass(warning.category, ConvergenceWarning):
            logger.warning('Mixed model for %s (%s table): %s', marker, name, warning.message)
    slide_variance = float(np.asarray(fit.cov_re)[0, 0])
    residual_variance = float(fit.scale)
    total = slide_variance + residual_variance
    proportion = slide_variance / total if total > 0 else np.nan
    return (slide_variance, residual_variance, proportion)
