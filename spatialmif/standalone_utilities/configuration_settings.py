"""Configuration settings."""
from importlib.metadata import version
from importlib.metadata import PackageNotFoundError
from os import environ
from os.path import expanduser
from os.path import exists
from warnings import warn
import configparser

from attrs import define

from spatialmif.standalone_utilities.log_formats import colorized_logger

logger = colorized_logger(__name__)

DEFAULT_CONFIG_FILE = '.spatialmif.config'


def get_version():
    _version = 'unknown'
    try:
        _version = version('spatialmif')
    except PackageNotFoundError:
        warn('spatialmif package is used but not installed.')
    return _version


@define
class TutorialSettings:
    """Settings shared by the tutorial chapters and the command-line scripts."""
    cache_directory: str = '~/.cache/spatialmif'
    default_dataset: str = 'simulated'
    output_directory: str = '_site'
    title: str = 'Spatial analysis of multiplex immunofluorescence'
    min_cells: int = 20
    permutations: int = 0
    seed: int = 1

    @classmethod
    def defaults(cls) -> 'TutorialSettings':
        return cls()

    @classmethod
    def from_file(cls, config_file: str | None = None) -> 'TutorialSettings':
        """Reads an INI file with sections [data], [site] and [spatial].

        When ``config_file`` is not given, the ``SPATIALMIF_CONFIG`` environment variable is
        consulted, then ``.spatialmif.config`` in the working directory. A missing default file
        means default settings; a missing explicitly named file is an error.
        """
        explicit = config_file is not None
        if config_file is None:
            config_file = environ.get('SPATIALMIF_CONFIG', DEFAULT_CONFIG_FILE)
            explicit = 'SPATIALMIF_CONFIG' in environ
        if not exists(config_file):
            if explicit:
                raise FileNotFoundError(f'Configuration file not found: {config_file}')
            return cls.defaults()
        parser = configparser.ConfigParser()
        parser.read(config_file)
        logger.debug('Read configuration from %s', config_file)
        settings = cls.defaults()
        for section, key in _get_string_keys():
            if parser.has_option(section, key):
                setattr(settings, key, parser[section][key])
        for section, key in _get_integer_keys():
            if parser.has_option(section, key):
                value = parser[section][key]
                try:
                    setattr(settings, key, int(value))
                except ValueError as error:
                    raise ValueError(f'Setting "{key}" must be an integer, got "{value}".') from error
        return settings

    def get_cache_directory(self) -> str:
        return expanduser(self.cache_directory)


def _get_string_keys():
    return [
        ('data', 'cache_directory'),
        ('data', 'default_dataset'),
        ('site', 'output_directory'),
        ('site', 'title'),
    ]


def _get_integer_keys():
    return [
        ('spatial', 'min_cells'),
        ('spatial', 'permutations'),
        ('spatial', 'seed'),
    ]
