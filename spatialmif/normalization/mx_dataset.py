"""Container for marker intensities across slides and everything computed to assess normalization."""
from typing import Sequence

from attrs import define
from attrs import field
from pandas import DataFrame
from pandas.api.types import is_numeric_dtype

from spatialmif.datasets.tables import require_columns
from spatialmif.standalone_utilities.errors import UnknownMethodError

TABLE_CHOICES = ('raw', 'normalized', 'both')


@define
class MxDataset:
    """Marker intensities of cells, with the slide and image each cell came from.

    ``normalized``, ``otsu``, ``variance`` and ``umap`` are filled in by ``normalize``,
    ``otsu_discordance``, ``variance_proportions`` and ``reduce_umap`` respectively.
    """
    data: DataFrame
    slide_column: str
    image_column: str
    marker_columns: tuple[str, ...]
    metadata_columns: tuple[str, ...] = ()
    normalized: DataFrame | None = None
    method: str | None = None
    otsu: DataFrame | None = None
    variance: DataFrame | None = None
    umap: DataFrame | None = None
    silhouette: dict[str, float] = field(factory=dict)

    @classmethod
    def from_table(
        cls,
        table: DataFrame,
        slide_column: str,
        image_column: str,
        marker_columns: Sequence[str],
        metadata_columns: Sequence[str] = (),
    ) -> 'MxDataset':
        columns = [slide_column, image_column, *marker_columns, *metadata_columns]
        require_columns(table, columns)
        non_numeric = [m for m in marker_columns if not is_numeric_dtype(table[m])]
        if len(non_numeric) > 0:
            raise ValueError(f'Marker columns must be numeric: {non_numeric}')
        if len(marker_columns) == 0:
            raise ValueError('Need at least one marker column.')
        data = table[list(dict.fromkeys(columns))].reset_index(drop=True)
        return cls(data, slide_column, image_column, tuple(marker_columns), tuple(metadata_columns))

    def table(self, which: str) -> DataFrame:
        if which == 'raw':
            return self.data
        if which == 'normalized':
            if self.normalized is None:
                raise ValueError('No normalized table yet; call normalize first.')
            return self.normalized
        raise UnknownMethodError(which, ('raw', 'normalized'))

    def tables(self, which: str = 'both') -> list[tuple[str, DataFrame]]:
        if which not in TABLE_CHOICES:
            raise UnknownMethodError(which, TABLE_CHOICES)
        if which == 'both':
            names = ['raw'] if self.normalized is None else ['raw', 'normalized']
        else:
            names = [which]
        return [(name, self.table(name)) for name in names]

    def slides(self) -> list[str]:
        return sorted(self.data[self.slide_column].astype(str).unique().tolist())
