import numpy as np
from numpy.random import default_rng
from pandas import DataFrame

GRID = np.linspace(0.0, 100.0, 21)


def basis():
    return (
        np.sin(np.pi * GRID / 100),
        GRID / 100,
        np.cos(2 * np.pi * GRID / 100),
    )


def functional_cohort(n_subjects=60, images_per_subject=2, seed=0):
    """Curves a * phi1 + b * phi2 per subject plus c * phi3 per image. Hazard rises with a and
    age rises with b."""
    rng = default_rng(seed)
    phi1, phi2, phi3 = basis()
    metadata_rows = []
    summary_rows = []
    for s in range(n_subjects):
        a, b = rng.normal(size=2)
        duration = rng.exponential(365 * np.exp(-1.5 * a))
        event = bool(rng.random() < 0.85)
        age = 60 + 8 * b + rng.normal(scale=1.0)
        sex = 'F' if s % 2 == 0 else 'M'
        for i in range(images_per_subject):
            image = f'p{s}_i{i}'
            metadata_rows.append((f'p{s}', image, duration, event, age, sex))
            curve = a * phi1 + b * phi2 + rng.normal(scale=0.3) * phi3 + rng.normal(scale=0.01, size=GRID.shape[0])
            summary_rows.extend((image, r, value) for r, value in zip(GRID, curve))
    metadata = DataFrame(metadata_rows, columns=['patient_id', 'image_id', 'survival_days', 'survival_status',
                                                 'age', 'sex'])
    summary = DataFrame(summary_rows, columns=['image_id', 'r', 'fundiff'])
    return metadata, summary
