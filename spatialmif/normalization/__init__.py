"""Normalization of marker intensities across slides, and measures of how well it worked."""
from spatialmif.normalization.mx_dataset import MxDataset
from spatialmif.normalization.methods import normalize
from spatialmif.normalization.methods import METHODS
from spatialmif.normalization.discordance import otsu_discordance
from spatialmif.normalization.discordance import summarize_discordance
from spatialmif.normalization.variance import variance_proportions
from spatialmif.normalization.reduction import reduce_umap
