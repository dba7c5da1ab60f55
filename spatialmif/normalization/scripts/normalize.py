"""Normalize the marker intensities of a cell table across slides."""
import argparse
from os.path import splitext

from spatialmif.datasets.tables import read_cell_table
from spatialmif.datasets.tables import write_cell_table
from spatialmif.normalization.mx_dataset import MxDataset
from spatialmif.normalization.methods import normalize
from spatialmif.normalization.methods import METHODS
from spatialmif.normalization.discordance import otsu_discordance
from spatialmif.normalization.discordance import summarize_discordance
from spatialmif.standalone_utilities.log_formats import colorized_logger

logger = colorized_logger('spatialmif normalization normalize')


def main():
    parser = argparse.ArgumentParser(
        prog='spatialmif normalization normalize',
        description='''
        Normalize marker intensity columns of a cell table across slides. Writes the normalized
        table, and next to it an Otsu discordance table comparing raw and normalized values.
        ''',
    )
    parser.add_argument('cell_table', help='Per-cell table (.tsv, .csv or .pkl).')
    parser.add_argument('output', help='Output normalized table.')
    parser.add_argument('--markers', dest='markers', nargs='+', required=True,
                        help='Marker intensity columns to normalize.')
    parser.add_argument('--method', dest='method', choices=list(METHODS.keys()), default='mean_divide')
    parser.add_argument('--slide-column', dest='slide_column', type=str, default='slide_id')
    parser.add_argument('--image-column', dest='image_column', type=str, default='image_id')
    parser.add_argument('--otsu-output', dest='otsu_output', type=str, required=False,
                        help='Output Otsu discordance table. Defaults to <output stem>.otsu<suffix>.')
    args = parser.parse_args()

    table = read_cell_table(args.cell_table)
    others = [c for c in table.columns if c not in args.markers + [args.slide_column, args.image_column]]
    mx = MxDataset.from_table(table, args.slide_column, args.image_column, args.markers, metadata_columns=others)
    normalize(mx, args.method)
    otsu_discordance(mx, table='both')
    for _, row in summarize_discordance(mx).iterrows():
        logger.info('%s %s: mean discordance %.3f', row['table'], row['marker'], row['mean_discordance'])
    write_cell_table(mx.table('normalized'), args.output)
    otsu_output = args.otsu_output
    if otsu_output is None:
        stem, suffix = splitext(args.output)
        otsu_output = f'{stem}.otsu{suffix}'
    write_cell_table(mx.otsu, otsu_output)


if __name__ == '__main__':
    main()
