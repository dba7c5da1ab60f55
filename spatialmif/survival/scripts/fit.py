"""Functional Cox model of survival on per-image summary function curves."""
import argparse

from pandas import option_context

from spatialmif.datasets.tables import read_cell_table
from spatialmif.datasets.tables import write_cell_table
from spatialmif.survival.functional_data import FunctionalDataset
from spatialmif.survival.functional_cox import fit_functional_cox
from spatialmif.survival.functional_cox import LEVELS
from spatialmif.standalone_utilities.log_formats import colorized_logger

logger = colorized_logger('spatialmif survival fit')


def main():
    parser = argparse.ArgumentParser(
        prog='spatialmif survival fit',
        description='''
        Functional principal components of per-image summary function curves, followed by a Cox
        model of survival on the component scores and optional scalar covariates.
        ''',
    )
    parser.add_argument('summary_table', help='Curves written by "spatialmif spatial summary-functions".')
    parser.add_argument('clinical_table', help='Table with one or more rows per image: a cell table, say.')
    parser.add_argument('--subject-key', dest='subject_key', type=str, default='patient_id')
    parser.add_argument('--sample-key', dest='sample_key', type=str, default='image_id')
    parser.add_argument('--duration', dest='duration', type=str, default='survival_days')
    parser.add_argument('--event', dest='event', type=str, default='survival_status')
    parser.add_argument('--covariates', dest='covariates', nargs='*', default=[])
    parser.add_argument('--value-column', dest='value_column', type=str, default='fundiff')
    parser.add_argument('--pve', dest='pve', type=float, default=0.99)
    parser.add_argument('--level', dest='level', choices=LEVELS, default='subject')
    parser.add_argument('--coefficient-output', dest='coefficient_output', type=str, required=False,
                        help='Where to write the coefficient function beta(r).')
    args = parser.parse_args()

    clinical = read_cell_table(args.clinical_table)
    fd = FunctionalDataset.from_cell_table(
        clinical,
        subject_key=args.subject_key,
        sample_key=args.sample_key,
        metadata_columns=[args.duration, args.event, *args.covariates],
    )
    fd.add_summary('summary', read_cell_table(args.summary_table))
    result = fit_functional_cox(
        fd,
        'summary',
        (args.duration, args.event),
        covariates=args.covariates,
        pve=args.pve,
        level=args.level,
        value_column=args.value_column,
    )
    logger.info('%s components explain %.3f of curve variance.', result.fpca.n_components,
                float(result.fpca.cumulative_pve()[-1]))
    with option_context('display.width', 200, 'display.max_columns', 20):
        print(result.cox.summary)
    print(f'Concordance: {result.cox.concordance:.3f}')
    if args.coefficient_output is not None:
        write_cell_table(result.coefficient_function, args.coefficient_output)


if __name__ == '__main__':
    main()
