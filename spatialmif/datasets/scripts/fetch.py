"""Fetch (or simulate) a dataset and save it as an .h5ad file."""
import argparse
from os import makedirs
from os.path import dirname
from os.path import join

from spatialmif.datasets.sources import available_datasets
from spatialmif.datasets.sources import load_dataset
from spatialmif.standalone_utilities.configuration_settings import TutorialSettings
from spatialmif.standalone_utilities.log_formats import colorized_logger

logger = colorized_logger('spatialmif datasets fetch')


def main():
    parser = argparse.ArgumentParser(
        prog='spatialmif datasets fetch',
        description='Fetch (or simulate) a dataset and save it as an .h5ad file.',
    )
    parser.add_argument('dataset', choices=available_datasets())
    parser.add_argument('--output', dest='output', type=str, required=False,
                        help='Output .h5ad file. Defaults to <dataset>.h5ad in the cache directory.')
    parser.add_argument('--config-file', dest='config_file', type=str, required=False)
    parser.add_argument('--seed', dest='seed', type=int, required=False,
                        help='Random seed, for the simulated dataset.')
    args = parser.parse_args()

    settings = TutorialSettings.from_file(args.config_file)
    kwargs = {}
    if args.dataset == 'simulated':
        kwargs['seed'] = settings.seed if args.seed is None else args.seed
    adata = load_dataset(args.dataset, cache_directory=settings.get_cache_directory(), **kwargs)
    output = args.output
    if output is None:
        output = join(settings.get_cache_directory(), f'{args.dataset}.h5ad')
    if dirname(output) != '':
        makedirs(dirname(output), exist_ok=True)
    adata.write_h5ad(output)
    logger.info('Saved %s cells to %s', adata.n_obs, output)


if __name__ == '__main__':
    main()
