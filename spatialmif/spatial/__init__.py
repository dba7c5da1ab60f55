"""Spatial point-pattern statistics of cells: Ripley's K, L and G functions."""
from spatialmif.spatial.ripley import ripley_k
from spatialmif.spatial.ripley import ripley_l
from spatialmif.spatial.ripley import nearest_neighbor_g
from spatialmif.spatial.ripley import cross_k
from spatialmif.spatial.ripley import cross_l
from spatialmif.spatial.ripley import cross_g
from spatialmif.spatial.window import ObservationWindow
from spatialmif.spatial.per_image import summary_functions_by_image
from spatialmif.spatial.per_image import cross_summary_functions_by_image
from spatialmif.spatial.per_image import summarize_curves
