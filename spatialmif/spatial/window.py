"""Rectangular observation window of a point pattern."""
import numpy as np
from numpy.typing import NDArray
from attrs import define


@define(frozen=True)
class ObservationWindow:
    """An axis-aligned rectangle [xmin, xmax] x [ymin, ymax]."""
    xmin: float
    xmax: float
    ymin: float
    ymax: float

    def __attrs_post_init__(self):
        if not (self.xmax > self.xmin and self.ymax > self.ymin):
            raise ValueError(f'Degenerate observation window: {self}')

    @classmethod
    def from_points(cls, points: NDArray) -> 'ObservationWindow':
        points = np.asarray(points, dtype=float)
        return cls(
            float(points[:, 0].min()),
            float(points[:, 0].max()),
            float(points[:, 1].min()),
            float(points[:, 1].max()),
        )

    @property
    def width(self) -> float:
        return self.xmax - self.xmin

    @property
    def height(self) -> float:
        return self.ymax - self.ymin

    @property
    def area(self) -> float:
        return self.width * self.height

    def contains(self, points: NDArray) -> NDArray:
        x = points[:, 0]
        y = points[:, 1]
        return (x >= self.xmin) & (x <= self.xmax) & (y >= self.ymin) & (y <= self.ymax)

    def edge_distances(self, points: NDArray) -> NDArray:
        """Distances to the right, top, left and bottom edges (counterclockwise order)."""
        x = points[:, 0]
        y = points[:, 1]
        return np.column_stack([self.xmax - x, self.ymax - y, x - self.xmin, y - self.ymin])

    def border_distances(self, points: NDArray) -> NDArray:
        return self.edge_distances(points).min(axis=1)
