"""Reading and writing flat per-cell tables."""
from os import makedirs
from os.path import dirname
from os.path import splitext
from typing import Iterable

import pandas as pd
from pandas import DataFrame

from spatialmif.standalone_utilities.errors import MissingColumnsError
from spatialmif.standalone_utilities.errors import TableFormatError
from spatialmif.standalone_utilities.log_formats import colorized_logger

logger = colorized_logger(__name__)

SEPARATORS = {'.tsv': '\t', '.csv': ','}


def _suffix(path: str) -> str:
    suffix = splitext(path)[1].lower()
    if suffix not in list(SEPARATORS.keys()) + ['.pkl']:
        raise TableFormatError(path)
    return suffix


def write_cell_table(table: DataFrame, path: str) -> None:
    """Writes ``table`` by file suffix. Delimited text loses categorical dtypes; pickle keeps them."""
    suffix = _suffix(path)
    directory = dirname(path)
    if directory != '':
        makedirs(directory, exist_ok=True)
    if suffix == '.pkl':
        table.to_pickle(path)
    else:
        table.to_csv(path, sep=SEPARATORS[suffix], index=False)
    logger.info('Wrote %s rows to %s', table.shape[0], path)


def read_cell_table(path: str) -> DataFrame:
    suffix = _suffix(path)
    if suffix == '.pkl':
        table = pd.read_pickle(path)
    else:
        table = pd.read_csv(path, sep=SEPARATORS[suffix])
    logger.debug('Read %s rows from %s', table.shape[0], path)
    return table


def require_columns(table: DataFrame, columns: Iterable[str]) -> None:
    missing = set(columns).difference(table.columns)
    if len(missing) > 0:
        raise MissingColumnsError(missing)
