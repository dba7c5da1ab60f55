"""Named dataset loaders: a simulated teaching cohort and public imaging datasets."""
from os import makedirs
from os.path import exists
from os.path import join
from os.path import expanduser
from typing import Callable

from pandas import DataFrame
from anndata import AnnData  # type: ignore
from anndata import read_h5ad  # type: ignore
import squidpy as sq  # type: ignore

from spatialmif.datasets.simulation import simulate_cohort
from spatialmif.standalone_utilities.errors import UnknownDatasetError
from spatialmif.standalone_utilities.log_formats import colorized_logger

logger = colorized_logger(__name__)

IMAGE_KEY_CANDIDATES = ('image_id', 'library_id', 'point', 'sample_id')
SLIDE_KEY_CANDIDATES = ('slide_id', 'donor', 'batch')


def _load_imc(cache_directory: str, **kwargs) -> AnnData:
    return sq.datasets.imc(path=join(cache_directory, 'imc.h5ad'), **kwargs)


def _load_mibitof(cache_directory: str, **kwargs) -> AnnData:
    return sq.datasets.mibitof(path=join(cache_directory, 'mibitof.h5ad'), **kwargs)


def _load_simulated(cache_directory: str, **kwargs) -> AnnData:
    return simulate_cohort(**kwargs)


LOADERS: dict[str, Callable[..., AnnData]] = {
    'simulated': _load_simulated,
    'imc': _load_imc,
    'mibitof': _load_mibitof,
}


def available_datasets() -> tuple[str, ...]:
    return tuple(LOADERS.keys())


def load_dataset(name_or_path: str, cache_directory: str | None = None, **kwargs) -> AnnData:
    """Loads a registered dataset by name, or an ``.h5ad`` file by path.

    Public datasets are downloaded into ``cache_directory`` on first use. The returned experiment
    always has ``image_id`` and ``slide_id`` annotations and a (possibly empty) clinical table in
    ``uns['clinical']``.
    """
    if name_or_path.endswith('.h5ad'):
        if not exists(name_or_path):
            raise FileNotFoundError(name_or_path)
        logger.info('Reading %s', name_or_path)
        return conform_experiment(read_h5ad(name_or_path))
    if name_or_path not in LOADERS:
        raise UnknownDatasetError(name_or_path, available_datasets())
    if cache_directory is None:
        cache_directory = '~/.cache/spatialmif'
    cache_directory = expanduser(cache_directory)
    makedirs(cache_directory, exist_ok=True)
    logger.info('Loading dataset "%s".', name_or_path)
    adata = LOADERS[name_or_path](cache_directory, **kwargs)
    return conform_experiment(adata)


def conform_experiment(adata: AnnData) -> AnnData:
    """Fills in the image and slide annotations and the clinical table where a dataset lacks them."""
    if 'image_id' not in adata.obs.columns:
        key = _first_present(adata, IMAGE_KEY_CANDIDATES)
        if key is None:
            logger.info('No image annotation; treating all cells as one image.')
            adata.obs['image_id'] = 'image_1'
        else:
            logger.debug('Using "%s" as the image annotation.', key)
            adata.obs['image_id'] = adata.obs[key].astype(str).to_numpy()
    if 'slide_id' not in adata.obs.columns:
        key = _first_present(adata, SLIDE_KEY_CANDIDATES)
        source = 'image_id' if key is None else key
        adata.obs['slide_id'] = adata.obs[source].astype(str).to_numpy()
    if 'spatial' not in adata.obsm:
        raise KeyError('Experiment has no obsm["spatial"] cell coordinates.')
    if 'clinical' not in adata.uns:
        adata.uns['clinical'] = DataFrame()
    return adata


def _first_present(adata: AnnData, candidates: tuple[str, ...]) -> str | None:
    for key in candidates:
        if key in adata.obs.columns:
            return key
    return None
