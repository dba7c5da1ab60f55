from os.path import expanduser

import pytest

from spatialmif.standalone_utilities.configuration_settings import TutorialSettings


def write_config(path, contents):
    with open(path, 'wt', encoding='utf-8') as file:
        file.write(contents)
    return str(path)


def test_defaults_when_no_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv('SPATIALMIF_CONFIG', raising=False)
    settings = TutorialSettings.from_file()
    assert settings == TutorialSettings.defaults()
    assert settings.min_cells == 20
    assert settings.permutations == 0


def test_values_read_from_file(tmp_path):
    config_file = write_config(tmp_path / 'settings.config', '''
[data]
cache_directory = ~/spatialmif_cache
[site]
title = Course notes
[spatial]
min_cells = 35
seed = 7
[unrelated]
key = value
''')
    settings = TutorialSettings.from_file(config_file)
    assert settings.title == 'Course notes'
    assert settings.min_cells == 35
    assert settings.seed == 7
    assert settings.permutations == 0
    assert settings.get_cache_directory() == expanduser('~/spatialmif_cache')


def test_environment_variable_names_file(tmp_path, monkeypatch):
    config_file = write_config(tmp_path / 'other.config', '[spatial]\npermutations = 19\n')
    monkeypatch.setenv('SPATIALMIF_CONFIG', config_file)
    assert TutorialSettings.from_file().permutations == 19


def test_bad_integer_names_key(tmp_path):
    config_file = write_config(tmp_path / 'bad.config', '[spatial]\nmin_cells = many\n')
    with pytest.raises(ValueError, match='min_cells'):
        TutorialSettings.from_file(config_file)


def test_missing_explicit_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        TutorialSettings.from_file(str(tmp_path / 'absent.config'))
