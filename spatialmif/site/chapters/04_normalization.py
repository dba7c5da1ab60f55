# %% [markdown]
# # Normalizing marker intensities across slides
#
# Staining and imaging conditions differ from slide to slide. The same marker can come out
# brighter on one slide than on another for technical reasons alone, and a single positivity
# threshold then misclassifies cells on the brighter and dimmer slides. The simulated cohort
# builds this in: every slide multiplies each marker by its own random factor.
#
# We compare normalization methods by three measures of remaining slide effect:
#
# * **Otsu discordance.** For each slide and marker, cells are called positive at the slide's
#   own Otsu threshold and at the Otsu threshold of all slides pooled. The score is the
#   fraction of cells on which the two calls disagree. Lower is better.
# * **Variance proportion.** A random-intercept model `value ~ 1 + (1 | slide)` splits the
#   variance of a marker into a slide component and a residual; the slide share should shrink.
# * **UMAP silhouette.** In a UMAP embedding of the cells, the silhouette score by slide shows
#   how strongly cells still group by slide.

# %%
from os.path import exists
from os.path import join

from pandas import concat

from spatialmif.datasets import cell_table
from spatialmif.datasets import load_dataset
from spatialmif.datasets import read_cell_table
from spatialmif.datasets.simulation import MARKERS
from spatialmif.normalization import MxDataset
from spatialmif.normalization import normalize
from spatialmif.normalization import otsu_discordance
from spatialmif.normalization import summarize_discordance
from spatialmif.normalization import variance_proportions
from spatialmif.normalization import reduce_umap
from spatialmif.plotting import plot_marker_densities
from spatialmif.plotting import plot_discordance
from spatialmif.plotting import plot_umap
from spatialmif.standalone_utilities.configuration_settings import TutorialSettings

settings = TutorialSettings.from_file()
path = join(settings.get_cache_directory(), 'simulated_cells.tsv')
if exists(path):
    cells = read_cell_table(path)
else:
    cells = cell_table(load_dataset('simulated', seed=settings.seed))
mx = MxDataset.from_table(cells, 'slide_id', 'image_id', MARKERS, metadata_columns=['cell_type'])
mx.slides()[:5]

# %% [markdown]
# ## Raw intensities
#
# The per-slide densities of CD8 are shifted against each other: the slide effect.

# %%
plot_marker_densities(mx, 'CD8')

# %% [markdown]
# ## Comparing methods
#
# * `mean_divide` divides each marker by its slide mean, removing multiplicative effects.
# * `log10` and `log10_mean_divide` compress the long right tails.
# * `combat` is the empirical Bayes batch correction of genomics, with slides as batches.
# * `registration` aligns the peak of each slide's intensity density with the average peak.

# %%
summaries = []
for method in ('none', 'mean_divide', 'log10', 'log10_mean_divide', 'combat', 'registration'):
    normalize(mx, method)
    otsu_discordance(mx, table='normalized')
    summary = summarize_discordance(mx)
    summary['method'] = method
    summaries.append(summary)
comparison = concat(summaries, ignore_index=True)
comparison.pivot(index='marker', columns='method', values='mean_discordance').round(3)

# %% [markdown]
# ## A closer look at one method
#
# With `mean_divide`, the CD8 densities line up and the discordance scores of most slides drop.

# %%
normalize(mx, 'mean_divide')
plot_marker_densities(mx, 'CD8')

# %%
otsu_discordance(mx, table='both')
plot_discordance(mx)

# %%
variance = variance_proportions(mx, table='both')
variance.pivot(index='marker', columns='table', values='proportion').round(3)

# %% [markdown]
# UMAP embeddings of a subsample of cells, coloured by slide, before and after. Cells still
# separate by cell type, which is biology; separation by slide is what normalization removes.

# %%
embedding = reduce_umap(mx, table='both', sample_size=1500, seed=settings.seed)
print({name: round(score, 3) for name, score in mx.silhouette.items()})
plot_umap(embedding)
