import pytest

from surfgen.config import REFINEMENT_RANGE, SMOOTHING_RANGE, SoapFilmSettings


def test_defaults_are_valid():
    settings = SoapFilmSettings().validate()
    assert settings.refinements == 6
    assert settings.smoothing_steps == 2
    assert settings.boundary == 'saddle'
    assert REFINEMENT_RANGE == (0, 8)
    assert SMOOTHING_RANGE == (0, 10)


@pytest.mark.parametrize('data', [
    {'refinements': 9},
    {'refinements': -1},
    {'smoothing_steps': 11},
    {'smoothing_steps': 2.5},
    {'refinements': True},
    {'boundary': 'square'},
    {'wireframe': True},
])
def test_invalid_mappings(data):
    with pytest.raises(ValueError):
        SoapFilmSettings.from_mapping(data)


def test_from_mapping():
    settings = SoapFilmSettings.from_mapping({'refinements': 3, 'boundary': 'circle'})
    assert settings.refinements == 3
    assert settings.smoothing_steps == 2
    assert settings.boundary == 'circle'


def test_load_yaml(tmp_path):
    path = tmp_path / 'soap.yaml'
    path.write_text('soap:\n  refinements: 4\n  smoothing_steps: 0\n', encoding='utf-8')
    settings = SoapFilmSettings.load(path)
    assert settings.refinements == 4
    assert settings.smoothing_steps == 0


def test_load_flat_yaml(tmp_path):
    path = tmp_path / 'soap.yaml'
    path.write_text('refinements: 1\n', encoding='utf-8')
    assert SoapFilmSettings.load(path).refinements == 1


def test_load_empty_yaml(tmp_path):
    path = tmp_path / 'empty.yaml'
    path.write_text('', encoding='utf-8')
    assert SoapFilmSettings.load(path) == SoapFilmSettings()


def test_load_rejects_non_mapping(tmp_path):
    path = tmp_path / 'list.yaml'
    path.write_text('- 1\n- 2\n', encoding='utf-8')
    with pytest.raises(ValueError):
        SoapFilmSettings.load(path)
