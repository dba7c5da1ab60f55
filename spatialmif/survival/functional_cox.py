"""Regression on curves through their functional principal component scores.

The curves enter a model as FPC scores. A fitted coefficient gamma_k of score k corresponds to the
coefficient function beta(r) = sum_k gamma_k phi_k(r), which shows at which radii the spatial
summary is associated with the outcome.
"""
from typing import Any
from typing import Sequence

from pandas import DataFrame
import statsmodels.api as sm  # type: ignore
from attrs import define

from spatialmif.survival.functional_data import FunctionalDataset
from spatialmif.survival.fpca import FPCAResult
from spatialmif.survival.fpca import run_fpca
from spatialmif.survival.cox import CoxResult
from spatialmif.survival.cox import fit_cox
from spatialmif.survival.cox import complete_rows
from spatialmif.survival.cox import expand_categorical
from spatialmif.standalone_utilities.errors import UnknownMethodError
from spatialmif.standalone_utilities.log_formats import colorized_logger

logger = colorized_logger(__name__)

LEVELS = ('subject', 'sample')


@define
class FunctionalCoxResult:
    fpca: FPCAResult
    cox: CoxResult
    coefficient_function: DataFrame
    level: str


@define
class ScalarOnFunctionResult:
    fpca: FPCAResult
    model: Any
    coefficient_function: DataFrame
    level: str


def fit_functional_cox(
    fd: FunctionalDataset,
    name: str,
    outcome_columns: tuple[str, str],
    covariates: Sequence[str] = (),
    pve: float = 0.99,
    level: str = 'subject',
    value_column: str = 'fundiff',
    n_components: int | None = None,
    penalizer: float = 0.0,
) -> FunctionalCoxResult:
    """Cox model of (duration, event) ``outcome_columns`` on the FPC scores of summary ``name``
    plus scalar ``covariates``.

    At the ``subject`` level, each subject's curves are averaged first. At the ``sample`` level
    every image is a row and standard errors are clustered by subject.
    """
    duration_column, event_column = outcome_columns
    curves, outcomes = _curves_and_outcomes(fd, name, [duration_column, event_column, *covariates], level,
                                            value_column)
    fpca = run_fpca(curves, pve=pve, n_components=n_components)
    frame = fpca.scores.join(outcomes)
    score_columns = list(fpca.scores.columns)
    cluster_column = None
    if level == 'sample':
        cluster_column = fd.subject_key
        frame[cluster_column] = fd.subjects(frame.index).to_numpy()
    cox = fit_cox(frame, duration_column, event_column, [*score_columns, *covariates], penalizer=penalizer,
                  cluster_column=cluster_column)
    gamma = cox.summary.loc[score_columns, 'coef'].to_numpy()
    beta = DataFrame({'r': fpca.grid, 'beta': fpca.coefficient_function(gamma)})
    result = FunctionalCoxResult(fpca, cox, beta, level)
    fd.fpca[name] = fpca
    fd.models[f'{name} cox'] = result
    return result


def fit_scalar_on_function(
    fd: FunctionalDataset,
    name: str,
    outcome_column: str,
    covariates: Sequence[str] = (),
    pve: float = 0.99,
    level: str = 'subject',
    value_column: str = 'fundiff',
    n_components: int | None = None,
) -> ScalarOnFunctionResult:
    """Least-squares regression of a scalar outcome (such as age) on the FPC scores of summary
    ``name`` plus scalar ``covariates``."""
    curves, outcomes = _curves_and_outcomes(fd, name, [outcome_column, *covariates], level, value_column)
    fpca = run_fpca(curves, pve=pve, n_components=n_components)
    score_columns = list(fpca.scores.columns)
    frame = complete_rows(fpca.scores.join(outcomes), [outcome_column, *score_columns, *covariates])
    frame, expanded = expand_categorical(frame, [*score_columns, *covariates])
    design = sm.add_constant(frame[expanded].astype(float), has_constant='add')
    model = sm.OLS(frame[outcome_column].astype(float), design).fit()
    beta = DataFrame({'r': fpca.grid, 'beta': fpca.coefficient_function(model.params[score_columns].to_numpy())})
    logger.info('Scalar-on-function regression of %s on "%s": R-squared %.3f', outcome_column, name, model.rsquared)
    result = ScalarOnFunctionResult(fpca, model, beta, level)
    fd.fpca[name] = fpca
    fd.models[f'{name} {outcome_column}'] = result
    return result


def _curves_and_outcomes(
    fd: FunctionalDataset,
    name: str,
    columns: Sequence[str],
    level: str,
    value_column: str,
) -> tuple[DataFrame, DataFrame]:
    if level not in LEVELS:
        raise UnknownMethodError(level, LEVELS)
    if level == 'subject':
        curves = fd.subject_curves(name, value_column=value_column)
        outcomes = fd.subject_metadata(columns)
    else:
        curves = fd.curves(name, value_column=value_column)
        outcomes = fd.metadata.set_index(fd.sample_key)[list(columns)]
    return curves, outcomes
