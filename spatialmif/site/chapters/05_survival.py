# %% [markdown]
# # Spatial summaries and survival
#
# Does the way immune cells gather around tumor cells say something about how long a patient
# lives? In the simulated cohort it does: patients whose cytotoxic T cells crowd the tumor
# have a lower hazard. This chapter recovers that relationship in two ways.
#
# 1. Reduce each image's curve to a number, average per patient, and use it in a Cox
#    proportional hazards model.
# 2. Treat the whole curve as a covariate. Functional principal components analysis (FPCA)
#    expresses each curve as a mean function plus a few eigenfunctions with patient-specific
#    scores; the scores enter the Cox model, and the fitted coefficients combine into a
#    coefficient function $\beta(r) = \sum_k \gamma_k \phi_k(r)$ showing at which distances
#    the spatial pattern matters.

# %%
from os.path import exists
from os.path import join

from spatialmif.datasets import cell_table
from spatialmif.datasets import load_dataset
from spatialmif.datasets import read_cell_table
from spatialmif.spatial import cross_summary_functions_by_image
from spatialmif.spatial import summarize_curves
from spatialmif.survival import FunctionalDataset
from spatialmif.survival import fit_cox
from spatialmif.survival import kaplan_meier_by_split
from spatialmif.survival import fit_functional_cox
from spatialmif.survival import fit_scalar_on_function
from spatialmif.survival import run_mfpca
from spatialmif.plotting import plot_kaplan_meier
from spatialmif.plotting import plot_eigenfunctions
from spatialmif.plotting import plot_coefficient_function
from spatialmif.standalone_utilities.configuration_settings import TutorialSettings

settings = TutorialSettings.from_file()
path = join(settings.get_cache_directory(), 'simulated_cells.tsv')
if exists(path):
    cells = read_cell_table(path)
else:
    cells = cell_table(load_dataset('simulated', seed=settings.seed))
cross = cross_summary_functions_by_image(
    cells, 'cell_type', 'tumor', 'cytotoxic T', summary='L', min_cells=settings.min_cells,
)
fd = FunctionalDataset.from_cell_table(
    cells,
    subject_key='patient_id',
    sample_key='image_id',
    metadata_columns=['survival_days', 'survival_status', 'age', 'stage'],
)
fd.add_summary('tumor to cytotoxic T', cross)
fd.metadata.head()

# %% [markdown]
# ## A scalar summary
#
# The area under each image's `fundiff` curve, averaged over the images of a patient.

# %%
areas = summarize_curves(cross).set_index('image_id')
areas['patient_id'] = fd.subjects(areas.index).to_numpy()
patients = fd.subject_metadata(['survival_days', 'survival_status', 'age', 'stage'])
patients = patients.join(areas.groupby('patient_id')['auc'].mean())
result = fit_cox(patients, 'survival_days', 'survival_status', ['auc', 'age'])
print(f'Concordance: {result.concordance:.3f}')
result.summary[['coef', 'exp(coef)', 'p']].round(4)

# %% [markdown]
# Kaplan-Meier curves of patients above and below the median area, with a log-rank test:

# %%
split = kaplan_meier_by_split(patients, 'auc', 'survival_days', 'survival_status')
plot_kaplan_meier(split)

# %% [markdown]
# ## FPCA and a functional Cox model
#
# With a dozen patients the model must stay small, so we keep the components explaining 90%
# of the variation of the patient-level curves.

# %%
functional = fit_functional_cox(
    fd, 'tumor to cytotoxic T', ('survival_days', 'survival_status'), pve=0.9,
)
print(f'{functional.fpca.n_components} components, concordance {functional.cox.concordance:.3f}')
plot_eigenfunctions(functional.fpca)

# %%
plot_coefficient_function(functional.coefficient_function)

# %% [markdown]
# ## Two levels of variation
#
# Each patient has several images. Multilevel FPCA separates variation between patients
# (level 1, from patient mean curves) from variation between images of one patient (level 2).
# A large level 2 share means that one image per patient would be a noisy summary.

# %%
curves = fd.curves('tumor to cytotoxic T')
mfpca = run_mfpca(curves, fd.subjects(curves.index), pve=0.9)
between = float(mfpca.level1.eigenvalues.sum())
within = float(mfpca.level2.eigenvalues.sum())
print(f'Share of variance between patients: {between / (between + within):.2f}')

# %% [markdown]
# ## Scalar-on-function regression
#
# The same machinery regresses a scalar outcome on the curves. Age is unrelated to the
# spatial pattern in the simulation, so the coefficient function should hover around zero.

# %%
by_age = fit_scalar_on_function(fd, 'tumor to cytotoxic T', 'age', pve=0.9)
by_age.model.summary2().tables[1].round(3)
