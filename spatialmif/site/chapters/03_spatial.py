# %% [markdown]
# # Spatial statistics: Ripley's K, L and G
#
# Cell centroids of one type in one image form a point pattern. Under complete spatial
# randomness (CSR) the points are a homogeneous Poisson process, and Ripley's K function
# satisfies $K(r) = \pi r^2$: the expected number of further points within distance $r$ of a
# typical point, divided by the intensity. Clustering makes $K(r)$ larger than $\pi r^2$ and
# regularity makes it smaller.
#
# * $L(r) = \sqrt{K(r)/\pi}$ is a variance-stabilized K, equal to $r$ under CSR.
# * $G(r)$ is the distribution function of the distance from a point to its nearest neighbour,
#   $1 - \exp(-\lambda \pi r^2)$ under CSR.
#
# Points near the border of the image have neighbours we cannot see. Edge corrections make up
# for this: the translation and isotropic corrections weight each pair, and the border
# (reduced sample) correction only uses points farther than $r$ from the border.

# %%
from os.path import exists
from os.path import join

import matplotlib.pyplot as plt

from spatialmif.datasets import cell_table
from spatialmif.datasets import load_dataset
from spatialmif.datasets import read_cell_table
from spatialmif.spatial import ObservationWindow
from spatialmif.spatial import ripley_k
from spatialmif.spatial import ripley_l
from spatialmif.spatial import nearest_neighbor_g
from spatialmif.spatial import summary_functions_by_image
from spatialmif.spatial import cross_summary_functions_by_image
from spatialmif.spatial import summarize_curves
from spatialmif.spatial.squidpy_metrics import squidpy_ripley
from spatialmif.plotting import plot_summary_functions
from spatialmif.standalone_utilities.configuration_settings import TutorialSettings

settings = TutorialSettings.from_file()
path = join(settings.get_cache_directory(), 'simulated_cells.tsv')
if exists(path):
    cells = read_cell_table(path)
else:
    cells = cell_table(load_dataset('simulated', seed=settings.seed))
image_id = cells['image_id'].iloc[0]
one_image = cells[cells['image_id'] == image_id]
window = ObservationWindow.from_points(one_image[['cell_x', 'cell_y']].to_numpy())
window

# %% [markdown]
# ## One image, three edge corrections
#
# Tumor cells in the simulation grow in a few nests, so their K function lies well above the
# CSR curve at every radius, whichever correction is used.

# %%
tumor = one_image.loc[one_image['cell_type'] == 'tumor', ['cell_x', 'cell_y']].to_numpy()
fig, ax = plt.subplots(1, 1, figsize=(6, 4))
for correction in ('translation', 'isotropic', 'border'):
    curve = ripley_k(tumor, window=window, correction=correction)
    ax.plot(curve['r'], curve['observed'], label=correction)
ax.plot(curve['r'], curve['theoretical'], color='black', linestyle='--', label='CSR')
ax.set_xlabel('r')
ax.set_ylabel('K(r)')
ax.legend(frameon=False)
fig.tight_layout()

# %% [markdown]
# L and G tell the same story in other units.

# %%
l_curve = ripley_l(tumor, window=window)
g_curve = nearest_neighbor_g(tumor, window=window)
fig, axs = plt.subplots(1, 2, figsize=(10, 4))
for ax, curve, name in zip(axs, (l_curve, g_curve), ('L', 'G')):
    ax.plot(curve['r'], curve['observed'], label='observed')
    ax.plot(curve['r'], curve['theoretical'], color='black', linestyle='--', label='CSR')
    ax.set_title(name)
    ax.set_xlabel('r')
    ax.legend(frameon=False)
fig.tight_layout()

# %% [markdown]
# ## Every image
#
# `summary_functions_by_image` computes a function for each image on one shared grid of radii
# and binds the results into a long table. The `fundiff` column is observed minus expected.
# Images with fewer than `min_cells` cells of the type are skipped, with a warning, and listed
# in `skipped`: a statistic computed from a handful of points is mostly noise.

# %%
cytotoxic = summary_functions_by_image(
    cells, 'cell_type', 'cytotoxic T', summary='L', min_cells=settings.min_cells,
)
print('skipped:', cytotoxic.skipped)
plot_summary_functions(cytotoxic)

# %% [markdown]
# ## Cross-type functions
#
# The cross K function of types $i$ and $j$ counts type $j$ cells around type $i$ cells. Here
# it measures how close cytotoxic T cells come to tumor cells, which is what the simulation
# links to survival.
#
# Tumor cells are not spread uniformly, so CSR is a poor reference for them. Relabelling
# cells at random while keeping all locations fixed gives a reference that respects the
# tissue architecture: with `permutations` set, `fundiff` is taken against the mean over
# relabellings.

# %%
cross = cross_summary_functions_by_image(
    cells, 'cell_type', 'tumor', 'cytotoxic T', summary='K', min_cells=settings.min_cells,
    permutations=9, seed=settings.seed,
)
plot_summary_functions(cross)

# %% [markdown]
# Scalar summaries of each curve, such as the area under `fundiff`, are convenient covariates
# for the survival models of the last chapter.

# %%
summarize_curves(cross).head()

# %% [markdown]
# ## Cross-check with squidpy
#
# squidpy computes per-cluster Ripley statistics with simulation envelopes. Its L function of
# the tumor cells agrees in shape with ours, up to its own choice of radii and edge handling.

# %%
statistic, pvalues = squidpy_ripley(one_image, 'cell_type', mode='L', n_simulations=20)
statistic[statistic['cluster'] == 'tumor'].head()
