"""Compute per-image Ripley summary functions from a cell table."""
import argparse

from spatialmif.datasets.tables import read_cell_table
from spatialmif.datasets.tables import write_cell_table
from spatialmif.spatial.per_image import summary_functions_by_image
from spatialmif.spatial.per_image import cross_summary_functions_by_image
from spatialmif.standalone_utilities.configuration_settings import TutorialSettings
from spatialmif.standalone_utilities.log_formats import colorized_logger

logger = colorized_logger('spatialmif spatial summary-functions')


def main():
    parser = argparse.ArgumentParser(
        prog='spatialmif spatial summary-functions',
        description='''
        Compute Ripley's K, L or G function of marked cells in each image, univariate or
        cross-type, and write the curves as one long table.
        ''',
    )
    parser.add_argument('cell_table', help='Per-cell table (.tsv, .csv or .pkl).')
    parser.add_argument('output', help='Output table of curves.')
    parser.add_argument('--summary', dest='summary', choices=['K', 'L', 'G'], default='K')
    parser.add_argument('--mark-column', dest='mark_column', type=str, required=True)
    parser.add_argument('--mark-value', dest='mark_value', type=str, required=False,
                        help='Mark of the cells to analyze, or of the "from" cells if --to-value is given.')
    parser.add_argument('--to-value', dest='to_value', type=str, required=False,
                        help='Mark of the "to" cells, for a cross-type function.')
    parser.add_argument('--correction', dest='correction', type=str, required=False)
    parser.add_argument('--image-column', dest='image_column', type=str, default='image_id')
    parser.add_argument('--min-cells', dest='min_cells', type=int, required=False)
    parser.add_argument('--permutations', dest='permutations', type=int, required=False)
    parser.add_argument('--config-file', dest='config_file', type=str, required=False)
    args = parser.parse_args()

    settings = TutorialSettings.from_file(args.config_file)
    min_cells = settings.min_cells if args.min_cells is None else args.min_cells
    permutations = settings.permutations if args.permutations is None else args.permutations
    table = read_cell_table(args.cell_table)
    common = {
        'summary': args.summary,
        'correction': args.correction,
        'image_column': args.image_column,
        'min_cells': min_cells,
        'permutations': permutations,
        'seed': settings.seed,
    }
    if args.to_value is not None:
        if args.mark_value is None:
            parser.error('--to-value requires --mark-value.')
        result = cross_summary_functions_by_image(table, args.mark_column, args.mark_value, args.to_value, **common)
    else:
        result = summary_functions_by_image(table, args.mark_column, mark_value=args.mark_value, **common)
    if len(result.skipped) > 0:
        logger.warning('Skipped images: %s', result.skipped)
    write_cell_table(result.table, args.output)


if __name__ == '__main__':
    main()
