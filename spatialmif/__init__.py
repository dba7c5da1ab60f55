"""Spatial analysis of multiplex immunofluorescence: tutorial companion package."""
from spatialmif.standalone_utilities.configuration_settings import get_version

submodule_names = ['datasets', 'spatial', 'normalization', 'survival', 'site']

__version__ = get_version()
