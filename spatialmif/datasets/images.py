"""Multichannel image files, e.g. one TIFF page per marker channel."""
from typing import Sequence

import numpy as np
from numpy.typing import NDArray
from attrs import define
from pandas import DataFrame
import tifffile  # type: ignore

from spatialmif.datasets.tables import require_columns
from spatialmif.standalone_utilities.log_formats import colorized_logger

logger = colorized_logger(__name__)

RGB = tuple[float, float, float]


@define
class MultichannelImage:
    """Pixels as a channels x height x width array, with a name for each channel."""
    pixels: NDArray
    channel_names: tuple[str, ...]

    def channel(self, name: str) -> NDArray:
        if name not in self.channel_names:
            raise KeyError(f'No channel "{name}". Channels: {list(self.channel_names)}')
        return self.pixels[self.channel_names.index(name)]

    def rescale_intensity(self, name: str, lower: float = 1.0, upper: float = 99.0) -> NDArray:
        """Clips a channel to the given percentiles and maps the result onto [0, 1]."""
        values = self.channel(name).astype(float)
        low, high = np.percentile(values, [lower, upper])
        if high <= low:
            return np.zeros_like(values)
        return np.clip((values - low) / (high - low), 0.0, 1.0)

    def composite(self, colors: dict[str, RGB], lower: float = 1.0, upper: float = 99.0) -> NDArray:
        """Additive RGB composite (height x width x 3), clipped to [0, 1]."""
        height, width = self.pixels.shape[1:]
        rgb = np.zeros((height, width, 3))
        for name, color in colors.items():
            scaled = self.rescale_intensity(name, lower=lower, upper=upper)
            rgb += scaled[:, :, None] * np.asarray(color)[None, None, :]
        return np.clip(rgb, 0.0, 1.0)


def read_multichannel_image(path: str, channel_names: Sequence[str] | None = None) -> MultichannelImage:
    pixels = tifffile.imread(path)
    if pixels.ndim == 2:
        pixels = pixels[np.newaxis, :, :]
    if pixels.ndim != 3:
        raise ValueError(f'Expected a 2 or 3 dimensional image, got shape {pixels.shape}.')
    number_channels = pixels.shape[0]
    if channel_names is None:
        channel_names = [f'channel_{i + 1}' for i in range(number_channels)]
    if len(channel_names) != number_channels:
        raise ValueError(f'{len(channel_names)} channel names given for {number_channels} channels.')
    logger.debug('Read %s channels of size %s from %s', number_channels, pixels.shape[1:], path)
    return MultichannelImage(pixels, tuple(channel_names))


def write_multichannel_image(image: MultichannelImage, path: str) -> None:
    tifffile.imwrite(path, image.pixels, metadata={'axes': 'CYX'})


def rasterize_cells(
    table: DataFrame,
    markers: Sequence[str],
    coordinate_columns: tuple[str, str] = ('cell_x', 'cell_y'),
    pixel_size: float = 2.0,
    cell_radius: float = 6.0,
) -> MultichannelImage:
    """Renders the cells of one image as a synthetic multichannel image: each cell is a Gaussian
    spot of its marker intensity, in every marker channel. Used to demonstrate image handling
    when no acquired image files are at hand.
    """
    require_columns(table, [*markers, *coordinate_columns])
    locations = table[list(coordinate_columns)].to_numpy(dtype=float)
    locations = (locations - locations.min(axis=0)) / pixel_size
    width = int(np.ceil(locations[:, 0].max())) + 1
    height = int(np.ceil(locations[:, 1].max())) + 1
    sigma = cell_radius / pixel_size
    pixels = np.zeros((len(markers), height, width), dtype=np.float32)
    half = int(np.ceil(3 * sigma))
    offsets = np.arange(-half, half + 1)
    spot = np.exp(-(offsets[:, None] ** 2 + offsets[None, :] ** 2) / (2 * sigma ** 2)).astype(np.float32)
    intensities = table[list(markers)].to_numpy(dtype=np.float32)
    for (x, y), values in zip(np.round(locations).astype(int), intensities):
        rows = slice(max(y - half, 0), min(y + half + 1, height))
        columns = slice(max(x - half, 0), min(x + half + 1, width))
        patch = spot[rows.start - (y - half):rows.stop - (y - half), columns.start - (x - half):columns.stop - (x - half)]
        pixels[:, rows, columns] += values[:, None, None] * patch[None, :, :]
    return MultichannelImage(pixels, tuple(markers))
