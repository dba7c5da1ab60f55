# %% [markdown]
# # Multichannel images
#
# The cell table is derived from images with one channel per marker. Looking at the
# images themselves is the best way to judge segmentation and phenotyping, and to get a feel
# for what "clustered" and "dispersed" mean for a cell type.
#
# mIF images are commonly stored as multi-page TIFF files, one page per channel. Without
# acquired images at hand, we render a synthetic one from the simulated cells: each cell
# becomes a Gaussian spot whose brightness in each channel is its marker intensity.

# %%
from os.path import join
from tempfile import mkdtemp

import matplotlib.pyplot as plt

from spatialmif.datasets import load_dataset
from spatialmif.datasets import cell_table
from spatialmif.datasets import rasterize_cells
from spatialmif.datasets import read_multichannel_image
from spatialmif.datasets import write_multichannel_image
from spatialmif.datasets.simulation import MARKERS
from spatialmif.plotting import plot_cells

cells = cell_table(load_dataset('simulated'))
image_id = cells['image_id'].iloc[0]
one_image = cells[cells['image_id'] == image_id]
image = rasterize_cells(one_image, MARKERS, pixel_size=2.0)
image.pixels.shape

# %% [markdown]
# Writing and reading back a TIFF keeps the channel order; the channel names travel separately.

# %%
path = join(mkdtemp(), f'{image_id}.tif')
write_multichannel_image(image, path)
image = read_multichannel_image(path, channel_names=MARKERS)
image.channel_names

# %% [markdown]
# ## Single channels and composites
#
# Raw intensities have long right tails, so each channel is clipped at its 1st and 99th
# percentiles before display. An additive composite assigns a colour to each channel.

# %%
fig, axs = plt.subplots(1, len(MARKERS), figsize=(15, 3.5))
for ax, marker in zip(axs, MARKERS):
    ax.imshow(image.rescale_intensity(marker), cmap='gray', origin='lower')
    ax.set_title(marker)
    ax.axis('off')
fig.tight_layout()

# %%
composite = image.composite({
    'CK': (1.0, 0.2, 0.2),
    'CD8': (0.2, 1.0, 0.2),
    'CD14': (0.2, 0.4, 1.0),
})
fig, ax = plt.subplots(1, 1, figsize=(6, 6))
ax.imshow(composite, origin='lower')
ax.axis('off')
ax.set_title('CK (red), CD8 (green), CD14 (blue)')
fig.tight_layout()

# %% [markdown]
# The same image as a point pattern, from the cell table:

# %%
plot_cells(cells, image_id, phenotype_column='cell_type')
