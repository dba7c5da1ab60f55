"""Loading imaging experiments and reshaping them into per-cell tables."""
from spatialmif.datasets.reshaping import cell_table
from spatialmif.datasets.reshaping import multi_assay_cell_table
from spatialmif.datasets.tables import read_cell_table
from spatialmif.datasets.tables import write_cell_table
from spatialmif.datasets.sources import load_dataset
from spatialmif.datasets.sources import available_datasets
from spatialmif.datasets.simulation import simulate_cohort
from spatialmif.datasets.images import MultichannelImage
from spatialmif.datasets.images import read_multichannel_image
from spatialmif.datasets.images import write_multichannel_image
from spatialmif.datasets.images import rasterize_cells
