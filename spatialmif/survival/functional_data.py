"""Curves from per-image spatial summaries, organized by subject and sample for functional models."""
from typing import Any
from typing import Sequence

import numpy as np
from pandas import DataFrame
from pandas import Series
from attrs import define
from attrs import field

from spatialmif.datasets.tables import require_columns
from spatialmif.spatial.per_image import SummaryFunctionResult
from spatialmif.standalone_utilities.log_formats import colorized_logger

logger = colorized_logger(__name__)


@define
class FunctionalDataset:
    """Sample metadata (one row per image, with the subject each image belongs to) plus named
    spatial summary tables in long format (``sample_key``, ``r``, values). FPCA results and
    fitted models are kept by name alongside.
    """
    metadata: DataFrame
    subject_key: str = 'patient_id'
    sample_key: str = 'image_id'
    summaries: dict[str, DataFrame] = field(factory=dict)
    fpca: dict[str, Any] = field(factory=dict)
    models: dict[str, Any] = field(factory=dict)

    def __attrs_post_init__(self):
        require_columns(self.metadata, [self.subject_key, self.sample_key])
        duplicates = self.metadata[self.sample_key].duplicated()
        if duplicates.any():
            raise ValueError(f'Metadata has {int(duplicates.sum())} duplicated {self.sample_key} rows.')

    @classmethod
    def from_cell_table(
        cls,
        table: DataFrame,
        subject_key: str = 'patient_id',
        sample_key: str = 'image_id',
        metadata_columns: Sequence[str] = (),
    ) -> 'FunctionalDataset':
        """Takes per-image metadata from the first cell of each image."""
        columns = list(dict.fromkeys([subject_key, sample_key, *metadata_columns]))
        require_columns(table, columns)
        metadata = table[columns].drop_duplicates(subset=[sample_key]).reset_index(drop=True)
        varying = [
            column for column in columns
            if column != sample_key and (table.groupby(sample_key, observed=True)[column].nunique(dropna=False) > 1).any()
        ]
        if len(varying) > 0:
            logger.warning('Columns vary within an image; first values kept: %s', varying)
        return cls(metadata, subject_key=subject_key, sample_key=sample_key)

    def add_summary(self, name: str, result_or_table: SummaryFunctionResult | DataFrame) -> None:
        if isinstance(result_or_table, SummaryFunctionResult):
            table = result_or_table.table.rename(columns={result_or_table.image_column: self.sample_key})
        else:
            table = result_or_table
        require_columns(table, [self.sample_key, 'r'])
        unknown = set(table[self.sample_key]).difference(self.metadata[self.sample_key])
        if len(unknown) > 0:
            logger.warning('Summary "%s" has %s samples without metadata; they will be ignored.', name, len(unknown))
            table = table[~table[self.sample_key].isin(unknown)]
        self.summaries[name] = table.reset_index(drop=True)
        logger.debug('Added summary "%s" for %s samples.', name, table[self.sample_key].nunique())

    def curves(self, name: str, value_column: str = 'fundiff') -> DataFrame:
        """Wide table of curves, one row per sample and one column per radius. Interior missing
        values are linearly interpolated along r. Samples still incomplete are dropped.
        """
        table = self._get_summary(name)
        require_columns(table, [value_column])
        wide = table.pivot(index=self.sample_key, columns='r', values=value_column)
        wide = wide.sort_index(axis=1).astype(float)
        wide = wide.interpolate(method='index', axis=1, limit_area='inside')
        incomplete = wide.isna().any(axis=1)
        if incomplete.any():
            logger.warning('Dropping %s samples with incomplete "%s" curves: %s', int(incomplete.sum()), name,
                           sorted(map(str, wide.index[incomplete])))
            wide = wide[~incomplete]
        if wide.shape[0] == 0:
            raise ValueError(f'No complete curves in summary "{name}".')
        wide.columns = wide.columns.astype(float)
        wide.columns.name = 'r'
        return wide

    def subjects(self, samples: Sequence[Any] | None = None) -> Series:
        """The subject of each sample, indexed by sample."""
        lookup = self.metadata.set_index(self.sample_key)[self.subject_key]
        if samples is None:
            return lookup
        return lookup.loc[list(samples)]

    def subject_curves(self, name: str, value_column: str = 'fundiff') -> DataFrame:
        """Curves averaged over the samples of each subject, indexed by subject."""
        wide = self.curves(name, value_column=value_column)
        subjects = self.subjects(wide.index)
        averaged = wide.groupby(subjects.to_numpy(), sort=True).mean()
        averaged.index.name = self.subject_key
        return averaged

    def subject_metadata(self, columns: Sequence[str]) -> DataFrame:
        """One row per subject with the given columns, indexed by subject."""
        require_columns(self.metadata, columns)
        return self.metadata.groupby(self.subject_key, sort=True)[list(columns)].first()

    def _get_summary(self, name: str) -> DataFrame:
        if name not in self.summaries:
            raise KeyError(f'No summary named "{name}". Available: {sorted(self.summaries.keys())}')
        return self.summaries[name]


def trapezoid_weights(grid) -> np.ndarray:
    """Quadrature weights w such that sum(w * f) approximates the integral of f over the grid."""
    grid = np.asarray(grid, dtype=float)
    if grid.ndim != 1 or grid.shape[0] < 2:
        raise ValueError('Need a grid of at least 2 points.')
    spacing = np.diff(grid)
    if not np.all(spacing > 0):
        raise ValueError('Grid must be strictly increasing.')
    weights = np.zeros(grid.shape[0])
    weights[:-1] += spacing / 2
    weights[1:] += spacing / 2
    return weights
