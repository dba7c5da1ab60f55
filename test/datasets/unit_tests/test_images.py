import numpy as np
import pytest
from pandas import DataFrame

from spatialmif.datasets.images import MultichannelImage
from spatialmif.datasets.images import read_multichannel_image
from spatialmif.datasets.images import write_multichannel_image
from spatialmif.datasets.images import rasterize_cells


def example_image():
    pixels = np.zeros((2, 20, 30), dtype=np.float32)
    pixels[0, 5:10, 5:10] = 100.0
    pixels[1] = np.linspace(0, 50, 30)[None, :]
    return MultichannelImage(pixels, ('CD8', 'CK'))


def test_write_then_read(tmp_path):
    path = str(tmp_path / 'image.tif')
    write_multichannel_image(example_image(), path)
    image = read_multichannel_image(path, channel_names=['CD8', 'CK'])
    assert image.pixels.shape == (2, 20, 30)
    assert np.allclose(image.channel('CD8'), example_image().channel('CD8'))


def test_channel_name_count_checked(tmp_path):
    path = str(tmp_path / 'image.tif')
    write_multichannel_image(example_image(), path)
    with pytest.raises(ValueError):
        read_multichannel_image(path, channel_names=['CD8'])


def test_unknown_channel():
    with pytest.raises(KeyError):
        example_image().channel('CD3')


def test_rescale_and_composite():
    image = example_image()
    scaled = image.rescale_intensity('CK')
    assert scaled.min() == 0.0 and scaled.max() == 1.0
    constant = MultichannelImage(np.ones((1, 4, 4)), ('DAPI',))
    assert np.all(constant.rescale_intensity('DAPI') == 0)
    rgb = image.composite({'CD8': (0.0, 1.0, 0.0), 'CK': (1.0, 0.0, 0.0)})
    assert rgb.shape == (20, 30, 3)
    assert rgb.min() >= 0.0 and rgb.max() <= 1.0


def test_rasterize_cells():
    cells = DataFrame({'cell_x': [10.0, 50.0], 'cell_y': [10.0, 30.0], 'CD8': [1.0, 0.0], 'CK': [0.0, 2.0]})
    image = rasterize_cells(cells, ['CD8', 'CK'], pixel_size=1.0, cell_radius=2.0)
    assert image.channel_names == ('CD8', 'CK')
    assert image.pixels.shape == (2, 21, 41)
    assert image.channel('CD8')[0, 0] == pytest.approx(1.0)
    assert image.channel('CK')[20, 40] == pytest.approx(2.0)
    assert image.channel('CK')[0, 0] == pytest.approx(0.0)
