"""Simulated multiplex immunofluorescence cohort, so that every chapter and test runs offline.

Each patient contributes one slide, and each slide several images. A patient-level immune
clustering parameter controls how strongly cytotoxic T cells gather around tumor cells, and the
same parameter lowers the hazard in the simulated survival outcome. Marker intensities carry a
multiplicative slide (batch) effect, which is what the normalization chapter removes.
"""
from itertools import chain

import numpy as np
from numpy.random import Generator
from numpy.random import default_rng
from pandas import DataFrame
from pandas import concat
from anndata import AnnData  # type: ignore

from spatialmif.standalone_utilities.log_formats import colorized_logger

logger = colorized_logger(__name__)

MARKERS = ('CD3', 'CD8', 'CD14', 'CD19', 'CK')
COMPARTMENTS = ('entire_cell', 'membrane', 'cytoplasm', 'nucleus')

CELL_TYPES = {
    'tumor': (0.40, ('CK',)),
    'cytotoxic T': (0.15, ('CD3', 'CD8')),
    'helper T': (0.10, ('CD3',)),
    'B': (0.08, ('CD19',)),
    'macrophage': (0.10, ('CD14',)),
    'other': (0.17, ()),
}

STAGES = ('I', 'II', 'III', 'IV')


def simulate_cohort(
    n_patients: int = 12,
    images_per_patient: int = 2,
    cells_per_image: int = 600,
    window_size: float = 1000.0,
    seed: int = 1,
) -> AnnData:
    """Returns an ``AnnData`` in the container layout expected by ``cell_table``:
    intensities in ``X`` (plus compartment ``layers``), annotations in ``obs``, centroids in
    ``obsm['spatial']``, and the clinical table, keyed by ``slide_id``, in ``uns['clinical']``.
    """
    if n_patients < 1 or images_per_patient < 1:
        raise ValueError('Need at least one patient and one image per patient.')
    rng = default_rng(seed)
    clustering = rng.uniform(0.0, 1.0, size=n_patients)
    obs_parts = []
    locations = []
    intensities = []
    for patient_index in range(n_patients):
        slide_id = f'slide_{patient_index + 1:02d}'
        patient_id = f'patient_{patient_index + 1:02d}'
        batch = np.exp(rng.normal(0.0, 0.3, size=len(MARKERS)))
        for image_index in range(images_per_patient):
            image_id = f'{slide_id}_image_{image_index + 1}'
            points, cell_types = _simulate_image(rng, cells_per_image, window_size, clustering[patient_index])
            values = _simulate_intensities(rng, cell_types, batch)
            obs = DataFrame({
                'slide_id': slide_id,
                'image_id': image_id,
                'patient_id': patient_id,
                'cell_type': cell_types,
                'tissue_category': np.where(cell_types == 'tumor', 'Tumor', 'Stroma'),
            })
            for marker in MARKERS:
                positive = np.array([marker in CELL_TYPES[t][1] for t in cell_types])
                obs[f'phenotype_{marker.lower()}'] = np.where(positive, f'{marker}+', f'{marker}-')
            obs_parts.append(obs)
            locations.append(points)
            intensities.append(values)
    obs = concat(obs_parts, ignore_index=True)
    obs.index = [f'cell_{i}' for i in range(obs.shape[0])]
    x = np.concatenate(intensities).astype(np.float32)
    layers = _simulate_compartments(rng, x)
    adata = AnnData(
        X=x,
        obs=obs,
        var=DataFrame(index=list(MARKERS)),
        layers=layers,
        obsm={'spatial': np.concatenate(locations)},
    )
    adata.uns['clinical'] = _simulate_clinical(rng, clustering)
    adata.uns['simulation'] = {'immune_clustering': clustering.tolist(), 'seed': seed}
    logger.info('Simulated %s cells over %s images from %s patients.', adata.n_obs,
                n_patients * images_per_patient, n_patients)
    return adata


def _simulate_image(
    rng: Generator,
    cells_per_image: int,
    window_size: float,
    clustering: float,
) -> tuple[np.ndarray, np.ndarray]:
    counts = {
        cell_type: rng.poisson(fraction * cells_per_image)
        for cell_type, (fraction, _) in CELL_TYPES.items()
    }
    tumor = _clustered_points(rng, counts['tumor'], window_size, number_parents=5, spread=0.08 * window_size)
    number_attracted = rng.binomial(counts['cytotoxic T'], clustering)
    if tumor.shape[0] > 0:
        anchors = tumor[rng.integers(0, tumor.shape[0], size=number_attracted)]
        attracted = _clip_to_window(anchors + rng.normal(0.0, 25.0, size=anchors.shape), window_size)
    else:
        attracted = rng.uniform(0, window_size, size=(number_attracted, 2))
    scattered = rng.uniform(0, window_size, size=(counts['cytotoxic T'] - number_attracted, 2))
    groups = {
        'tumor': tumor,
        'cytotoxic T': np.concatenate([attracted, scattered]),
    }
    for cell_type in ('helper T', 'B', 'macrophage', 'other'):
        groups[cell_type] = rng.uniform(0, window_size, size=(counts[cell_type], 2))
    points = np.concatenate(list(groups.values()))
    cell_types = np.array(list(chain(*[[name] * group.shape[0] for name, group in groups.items()])))
    return points, cell_types


def _clustered_points(rng: Generator, count: int, window_size: float, number_parents: int, spread: float) -> np.ndarray:
    parents = rng.uniform(0, window_size, size=(number_parents, 2))
    points = np.empty((0, 2))
    while points.shape[0] < count:
        offspring = parents[rng.integers(0, number_parents, size=count)] + rng.normal(0, spread, size=(count, 2))
        inside = np.all((offspring >= 0) & (offspring <= window_size), axis=1)
        points = np.concatenate([points, offspring[inside]])
    return points[:count]


def _clip_to_window(points: np.ndarray, window_size: float) -> np.ndarray:
    return np.clip(points, 0.0, window_size)


def _simulate_intensities(rng: Generator, cell_types: np.ndarray, batch: np.ndarray) -> np.ndarray:
    values = np.exp(rng.normal(0.0, 0.5, size=(cell_types.shape[0], len(MARKERS))))
    for j, marker in enumerate(MARKERS):
        positive = np.array([marker in CELL_TYPES[t][1] for t in cell_types])
        values[positive, j] = np.exp(rng.normal(1.6, 0.4, size=int(positive.sum())))
    return values * batch


def _simulate_compartments(rng: Generator, x: np.ndarray) -> dict[str, np.ndarray]:
    shares = {'membrane': 1.2, 'cytoplasm': 0.9, 'nucleus': 0.5}
    layers = {'entire_cell': x.copy()}
    for compartment, share in shares.items():
        noise = rng.uniform(0.85, 1.15, size=x.shape)
        layers[compartment] = (x * share * noise).astype(np.float32)
    return layers


def _simulate_clinical(rng: Generator, clustering: np.ndarray) -> DataFrame:
    n_patients = clustering.shape[0]
    stage_index = rng.integers(0, len(STAGES), size=n_patients)
    age = np.round(rng.normal(65, 8, size=n_patients)).astype(int)
    log_hazard = -1.5 * clustering + 0.4 * stage_index
    event_times = rng.exponential(1500.0 * np.exp(-log_hazard))
    censoring_times = rng.uniform(500.0, 4000.0, size=n_patients)
    return DataFrame({
        'slide_id': [f'slide_{i + 1:02d}' for i in range(n_patients)],
        'patient_id': [f'patient_{i + 1:02d}' for i in range(n_patients)],
        'age': age,
        'stage': [STAGES[i] for i in stage_index],
        'survival_days': np.round(np.minimum(event_times, censoring_times), 1),
        'survival_status': (event_times <= censoring_times).astype(int),
    })
