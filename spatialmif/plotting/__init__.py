"""Figures for the tutorial chapters."""
from spatialmif.plotting.figures import plot_cells
from spatialmif.plotting.figures import plot_summary_functions
from spatialmif.plotting.figures import plot_marker_densities
from spatialmif.plotting.figures import plot_discordance
from spatialmif.plotting.figures import plot_umap
from spatialmif.plotting.figures import plot_eigenfunctions
from spatialmif.plotting.figures import plot_coefficient_function
from spatialmif.plotting.figures import plot_kaplan_meier
