"""Relating per-image spatial summaries to survival, with Cox and functional regression models."""
from spatialmif.survival.functional_data import FunctionalDataset
from spatialmif.survival.fpca import FPCAResult
from spatialmif.survival.fpca import MFPCAResult
from spatialmif.survival.fpca import run_fpca
from spatialmif.survival.fpca import run_mfpca
from spatialmif.survival.cox import CoxResult
from spatialmif.survival.cox import fit_cox
from spatialmif.survival.cox import kaplan_meier_by_split
from spatialmif.survival.functional_cox import fit_functional_cox
from spatialmif.survival.functional_cox import fit_scalar_on_function
