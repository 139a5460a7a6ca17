"""Mapping layer between flat settings fields and sectioned TOML format.

DispatchSettings nests a SelectionCriteria, but profiles and CLI overrides
are handled as one flat dict. This module provides two functions:
- flat_to_sectioned(): flat dict → sectioned dict (for TOML save)
- sectioned_to_flat(): sectioned dict → flat dict (for TOML load)
"""

from __future__ import annotations

# {section_name: {flat_field_name: short_name_in_toml}}
SECTION_MAP: dict[str, dict[str, str]] = {
    'selection': {
        'map_name': 'map',
        'min_zoom': 'min_zoom',
        'max_zoom': 'max_zoom',
        'min_x': 'min_x',
        'max_x': 'max_x',
        'min_y': 'min_y',
        'max_y': 'max_y',
        'force': 'force',
        'only_existing': 'exists',
        'recurse': 'recurse',
        'all_mode': 'all',
        'metatile': 'metatile',
    },
    'queue': {
        'socket': 'socket',
        'num_threads': 'num_threads',
        'max_load': 'max_load',
        'submit_timeout': 'submit_timeout',
    },
    'storage': {
        'tile_dir': 'tile_dir',
    },
}

SELECTION_FIELDS: frozenset[str] = frozenset(SECTION_MAP['selection'])

# Reverse index: flat_field → (section, short_name)
_FLAT_TO_SECTION: dict[str, tuple[str, str]] = {}
for _section, _fields in SECTION_MAP.items():
    for _flat, _short in _fields.items():
        _FLAT_TO_SECTION[_flat] = (_section, _short)

# Reverse index: (section, short_name) → flat_field
_SECTION_TO_FLAT: dict[str, dict[str, str]] = {}
for _section, _fields in SECTION_MAP.items():
    _SECTION_TO_FLAT[_section] = {v: k for k, v in _fields.items()}


def flat_to_sectioned(flat: dict) -> dict:
    """Convert flat settings dict to sectioned dict for TOML output."""
    result: dict = {'common': {}}
    for key, value in flat.items():
        if value is None:
            # TOML has no null
            continue
        if key in _FLAT_TO_SECTION:
            section, short_name = _FLAT_TO_SECTION[key]
            if section not in result:
                result[section] = {}
            result[section][short_name] = value
        else:
            result['common'][key] = value
    return result


def sectioned_to_flat(data: dict) -> dict:
    """Convert sectioned TOML dict to flat dict for settings validation."""
    flat: dict = {}
    for key, value in data.items():
        if isinstance(value, dict) and key in _SECTION_TO_FLAT:
            # Known section: expand short names to flat names
            mapping = _SECTION_TO_FLAT[key]
            for short_name, field_value in value.items():
                flat_name = mapping.get(short_name, short_name)
                flat[flat_name] = field_value
        elif isinstance(value, dict):
            # Common or unknown section: pass keys through as-is
            flat.update(value)
        else:
            # Top-level key (flat TOML)
            flat[key] = value
    return flat


def split_flat(flat: dict) -> tuple[dict, dict]:
    """Split a flat dict into (selection fields, remaining settings fields)."""
    selection = {k: v for k, v in flat.items() if k in SELECTION_FIELDS}
    rest = {k: v for k, v in flat.items() if k not in SELECTION_FIELDS}
    return selection, rest
