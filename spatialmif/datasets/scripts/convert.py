"""Reshape an .h5ad imaging experiment into a flat per-cell table file."""
import argparse

from spatialmif.datasets.sources import load_dataset
from spatialmif.datasets.reshaping import cell_table
from spatialmif.datasets.reshaping import multi_assay_cell_table
from spatialmif.datasets.tables import write_cell_table


def main():
    parser = argparse.ArgumentParser(
        prog='spatialmif datasets convert',
        description='''
        Convert an imaging experiment to one row per cell, with marker intensities, coordinates,
        phenotype calls and joined clinical covariates.
        ''',
    )
    parser.add_argument('input', help='An .h5ad file, or a registered dataset name.')
    parser.add_argument('output', help='Output table (.tsv, .csv or .pkl).')
    parser.add_argument('--join-key', dest='join_key', type=str, default='slide_id',
                        help='Cell annotation used to join the clinical table.')
    parser.add_argument('--layers', dest='layers', nargs='*', default=None,
                        help='Expand these assay layers into <layer>_<marker> columns.')
    parser.add_argument('--all-layers', dest='all_layers', action='store_true',
                        help='Expand every assay layer.')
    args = parser.parse_args()

    adata = load_dataset(args.input)
    if args.all_layers or args.layers:
        table = multi_assay_cell_table(adata, layers=args.layers, join_key=args.join_key)
    else:
        table = cell_table(adata, join_key=args.join_key)
    write_cell_table(table, args.output)


if __name__ == '__main__':
    main()
