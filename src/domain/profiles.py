import logging
from pathlib import Path

import tomlkit

from domain.models import DispatchSettings, SelectionCriteria
from domain.toml_sections import flat_to_sectioned, sectioned_to_flat, split_flat
from shared.constants import PROFILES_DIR

logger = logging.getLogger(__name__)


def _profiles_dir() -> Path:
    """
    Determine profiles directory.

    <project_root>/configs/profiles, so a checkout can be run in place.
    """
    project_root = Path(__file__).resolve().parent.parent.parent
    return project_root / PROFILES_DIR


def profile_path(name_or_path: str) -> Path:
    """Resolve a profile name (without .toml) or an explicit TOML path."""
    p = Path(name_or_path)
    if p.suffix.lower() == '.toml':
        return p
    return _profiles_dir() / f'{name_or_path}.toml'


def read_profile(name_or_path: str) -> dict:
    """
    Read a TOML profile and return it as a flat dict of settings fields.

    Accepts both the sectioned layout ([selection], [queue], [storage])
    and plain top-level keys.
    """
    path = profile_path(name_or_path)
    if not path.exists():
        msg = f'Profile not found: {path}'
        raise FileNotFoundError(msg)
    data = tomlkit.parse(path.read_text(encoding='utf-8')).unwrap()
    flat = sectioned_to_flat(data)
    logger.debug('Profile %s: %d fields', path, len(flat))
    return flat


def build_settings(flat: dict) -> DispatchSettings:
    """Validate a flat dict into DispatchSettings (raises ValidationError)."""
    selection, rest = split_flat(flat)
    return DispatchSettings(selection=SelectionCriteria(**selection), **rest)


def load_profile(name_or_path: str, overrides: dict | None = None) -> DispatchSettings:
    """
    Load a profile and apply overrides on top of it.

    Overrides with value None are ignored so unset CLI flags keep the
    profile's value.
    """
    flat = read_profile(name_or_path)
    if overrides:
        flat.update({k: v for k, v in overrides.items() if v is not None})
    return build_settings(flat)


def settings_to_flat(settings: DispatchSettings) -> dict:
    data = settings.model_dump()
    flat = data.pop('selection')
    flat.update(data)
    return flat


def save_profile(name_or_path: str, settings: DispatchSettings) -> Path:
    """Save settings as a sectioned TOML profile."""
    path = profile_path(name_or_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    sectioned = flat_to_sectioned(settings_to_flat(settings))
    path.write_text(tomlkit.dumps(sectioned), encoding='utf-8')
    return path
