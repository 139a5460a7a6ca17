"""Tests for TOML sectioned profile mapping layer."""

import tomlkit

from domain.models import DispatchSettings, SelectionCriteria
from domain.profiles import settings_to_flat
from domain.toml_sections import (
    SECTION_MAP,
    SELECTION_FIELDS,
    flat_to_sectioned,
    sectioned_to_flat,
    split_flat,
)


def _flat(**selection):
    return settings_to_flat(DispatchSettings(selection=SelectionCriteria(**selection)))


class TestFlatToSectioned:
    """Tests for flat_to_sectioned()."""

    def test_creates_expected_sections(self):
        result = flat_to_sectioned(_flat())
        assert set(result) == {'common', 'selection', 'queue', 'storage'}

    def test_short_names(self):
        result = flat_to_sectioned(_flat(only_existing=True, all_mode=True))
        assert result['selection']['exists'] is True
        assert result['selection']['all'] is True
        assert result['selection']['map'] == 'default'
        assert 'only_existing' not in result['selection']

    def test_none_values_dropped(self):
        result = flat_to_sectioned(_flat())
        assert 'min_x' not in result['selection']
        assert 'submit_timeout' not in result['queue']

    def test_unknown_fields_go_to_common(self):
        result = flat_to_sectioned(_flat())
        assert result['common'] == {'verbose': False}

    def test_output_is_valid_toml(self):
        text = tomlkit.dumps(flat_to_sectioned(_flat(min_x=8)))
        assert '[selection]' in text
        assert 'min_x = 8' in text


class TestSectionedToFlat:
    """Tests for sectioned_to_flat()."""

    def test_expands_short_names(self):
        flat = sectioned_to_flat({
            'selection': {'map': 'osm', 'exists': True},
            'queue': {'num_threads': 4},
            'storage': {'tile_dir': '/srv/tiles'},
        })
        assert flat == {
            'map_name': 'osm',
            'only_existing': True,
            'num_threads': 4,
            'tile_dir': '/srv/tiles',
        }

    def test_flat_top_level_keys(self):
        assert sectioned_to_flat({'max_load': 4}) == {'max_load': 4}

    def test_common_passthrough(self):
        assert sectioned_to_flat({'common': {'verbose': True}}) == {'verbose': True}


def test_every_selection_field_mapped():
    assert set(SELECTION_FIELDS) == set(SECTION_MAP['selection'])
    assert SELECTION_FIELDS <= set(SelectionCriteria.model_fields)


def test_split_flat():
    selection, rest = split_flat({'force': True, 'num_threads': 2})
    assert selection == {'force': True}
    assert rest == {'num_threads': 2}
