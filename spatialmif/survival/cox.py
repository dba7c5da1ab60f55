"""Proportional hazards models and Kaplan-Meier comparisons, through lifelines."""
from typing import Sequence
import warnings

import numpy as np
from pandas import DataFrame
from pandas import Series
from pandas import get_dummies
from pandas.api.types import is_numeric_dtype
from pandas.api.types import is_bool_dtype
from attrs import define
from attrs import field
from lifelines import CoxPHFitter  # type: ignore
from lifelines import KaplanMeierFitter  # type: ignore
from lifelines.statistics import logrank_test  # type: ignore
from lifelines.exceptions import ConvergenceWarning  # type: ignore

from spatialmif.datasets.tables import require_columns
from spatialmif.standalone_utilities.log_formats import colorized_logger

logger = colorized_logger(__name__)


@define
class CoxResult:
    model: CoxPHFitter
    summary: DataFrame
    concordance: float
    covariates: tuple[str, ...]
    n_observations: int
    n_events: int

    def hazard_ratios(self) -> Series:
        return self.summary['exp(coef)']


@define
class KaplanMeierSplit:
    """Kaplan-Meier fits of the groups above and below a covariate threshold."""
    covariate: str
    threshold: float
    groups: Series
    fitters: dict[str, KaplanMeierFitter] = field(factory=dict)
    test_statistic: float = float('nan')
    p_value: float = float('nan')


def fit_cox(
    frame: DataFrame,
    duration_column: str,
    event_column: str,
    covariates: Sequence[str],
    penalizer: float = 0.0,
    cluster_column: str | None = None,
) -> CoxResult:
    """Cox model of the event time on ``covariates``. Non-numeric covariates are expanded into
    indicator columns against their first level. ``cluster_column`` requests sandwich standard
    errors for correlated rows, such as several images of one patient.
    """
    covariates = list(covariates)
    if len(covariates) == 0:
        raise ValueError('Need at least one covariate.')
    extra = [] if cluster_column is None else [cluster_column]
    data = complete_rows(frame, [duration_column, event_column, *covariates, *extra])
    data, expanded = expand_categorical(data, covariates)
    data[event_column] = data[event_column].astype(int)
    n_events = int(data[event_column].sum())
    if n_events == 0:
        raise ValueError('No events observed; the Cox model cannot be fit.')
    fitter = CoxPHFitter(penalizer=penalizer)
    columns = [duration_column, event_column, *expanded, *extra]
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter('always', ConvergenceWarning)
        fitter.fit(data[columns], duration_col=duration_column, event_col=event_column, cluster_col=cluster_column)
    for warning in caught:
        if issubclass(warning.category, ConvergenceWarning):
            logger.warning('Cox model: %s', warning.message)
    logger.info('Cox model on %s rows (%s events), concordance %.3f.', data.shape[0], n_events,
                fitter.concordance_index_)
    return CoxResult(
        fitter,
        fitter.summary,
        float(fitter.concordance_index_),
        tuple(expanded),
        data.shape[0],
        n_events,
    )


def kaplan_meier_by_split(
    frame: DataFrame,
    covariate: str,
    duration_column: str,
    event_column: str,
    split: str | float = 'median',
) -> KaplanMeierSplit:
    """Splits rows into ``high`` (covariate at or above the threshold) and ``low``, fits a
    Kaplan-Meier curve to each and compares them with the log-rank test. The threshold is the
    covariate median, or the given number.
    """
    data = complete_rows(frame, [covariate, duration_column, event_column])
    values = data[covariate].astype(float)
    if split == 'median':
        threshold = float(values.median())
    elif isinstance(split, str):
        raise ValueError(f'Unknown split "{split}"; use "median" or a number.')
    else:
        threshold = float(split)
    groups = Series(np.where(values >= threshold, 'high', 'low'), index=data.index, name=f'{covariate} group')
    if groups.nunique() < 2:
        raise ValueError(f'Splitting {covariate} at {threshold} leaves a single group.')
    result = KaplanMeierSplit(covariate, threshold, groups)
    for label in ('low', 'high'):
        selection = data[groups == label]
        fitter = KaplanMeierFitter()
        fitter.fit(selection[duration_column], event_observed=selection[event_column], label=f'{covariate} {label}')
        result.fitters[label] = fitter
    high = data[groups == 'high']
    low = data[groups == 'low']
    test = logrank_test(high[duration_column], low[duration_column], high[event_column], low[event_column])
    result.test_statistic = float(test.test_statistic)
    result.p_value = float(test.p_value)
    logger.info('Log-rank test of %s split at %.4g: p = %.4g', covariate, threshold, result.p_value)
    return result


def complete_rows(frame: DataFrame, columns: Sequence[str]) -> DataFrame:
    """The given columns of the rows with no missing value among them."""
    columns = list(dict.fromkeys(columns))
    require_columns(frame, columns)
    data = frame[columns]
    incomplete = data.isna().any(axis=1)
    if incomplete.any():
        logger.warning('Dropping %s of %s rows with missing values.', int(incomplete.sum()), data.shape[0])
    return data[~incomplete].copy()


def expand_categorical(data: DataFrame, covariates: Sequence[str]) -> tuple[DataFrame, list[str]]:
    expanded = []
    for covariate in covariates:
        values = data[covariate]
        if is_bool_dtype(values):
            data[covariate] = values.astype(int)
            expanded.append(covariate)
        elif is_numeric_dtype(values):
            expanded.append(covariate)
        else:
            indicators = get_dummies(values.astype(str), prefix=covariate, drop_first=True, dtype=int)
            if indicators.shape[1] == 0:
                logger.warning('Covariate %s has a single level; omitted.', covariate)
                continue
            data = data.join(indicators)
            expanded.extend(indicators.columns)
    return data, expanded
