# %% [markdown]
# # Loading and reshaping multiplex imaging data
#
# Multiplex immunofluorescence (mIF) stains a tissue section for several protein markers at
# once. After segmentation, each cell is described by its location in the image, its marker
# intensities (often measured separately in the nucleus, cytoplasm and membrane), and a
# phenotype call for each marker. Patients contribute one or more slides, and each slide is
# imaged at several regions of interest.
#
# Imaging experiments are usually distributed as structured containers. Here we use `AnnData`:
# intensities sit in a cells-by-markers matrix, cell annotations in `obs`, cell centroids in
# `obsm['spatial']` and patient data in `uns`. Most analyses, however, are easiest on one flat
# table with a row per cell.
#
# This chapter works with a simulated cohort, so that it runs without downloads. The
# public IMC and MIBI-TOF datasets distributed with squidpy can be loaded the same way with
# `load_dataset('imc')` or `load_dataset('mibitof')`.

# %%
from os.path import join

from spatialmif.datasets import load_dataset
from spatialmif.datasets import cell_table
from spatialmif.datasets import multi_assay_cell_table
from spatialmif.datasets import write_cell_table
from spatialmif.standalone_utilities.configuration_settings import TutorialSettings

settings = TutorialSettings.from_file()
adata = load_dataset('simulated', seed=settings.seed)
adata

# %% [markdown]
# The clinical table has one row per slide, keyed by `slide_id`:

# %%
adata.uns['clinical'].head()

# %% [markdown]
# ## One row per cell
#
# `cell_table` binds the cell annotations, the centroid coordinates and one column per marker,
# then joins the clinical covariates on the slide key. The number of rows always equals the
# number of cells, and the cell order is that of the experiment.

# %%
cells = cell_table(adata, join_key='slide_id')
print(cells.shape)
cells.head()

# %% [markdown]
# When each marker is measured in several cell compartments, `multi_assay_cell_table` expands
# every assay layer into its own set of columns named `<compartment>_<marker>`.

# %%
multi = multi_assay_cell_table(adata, layers=['nucleus', 'membrane'])
[column for column in multi.columns if column.startswith(('nucleus_', 'membrane_'))]

# %% [markdown]
# ## Cells per image and phenotype
#
# A quick tabulation is the first check on any dataset: images with very few cells of a type
# cannot support a spatial statistic for that type, and will be filtered out later.

# %%
counts = cells.groupby(['image_id', 'cell_type'], observed=True).size().unstack(fill_value=0)
counts.head(8)

# %% [markdown]
# Finally we save the table, so that the following chapters can start from it.

# %%
cell_table_path = join(settings.get_cache_directory(), 'simulated_cells.tsv')
write_cell_table(cells, cell_table_path)
