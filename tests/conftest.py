"""
Pytest configuration and fixtures for Starship Architect tests.
"""
import pytest

from module_registry import default_registry
from starship_models import Theme, ThemeColors
from theme_manager import BUILTIN_THEMES


BASE16_YAML = """\
system: "base16"
name: "Test Scheme"
author: "Tester"
variant: "dark"
palette:
  base00: "1e1e2e"
  base01: "181825"
  base02: "313244"
  base03: "45475a"
  base04: "585b70"
  base05: "cdd6f4"
  base06: "f5e0dc"
  base07: "b4befe"
  base08: "f38ba8"
  base09: "fab387"
  base0A: "f9e2af"
  base0B: "a6e3a1"
  base0C: "94e2d5"
  base0D: "89b4fa"
  base0E: "cba6f7"
  base0F: "f2cdcd"
"""


@pytest.fixture
def registry():
    """Registry with the built-in module definitions."""
    return default_registry()


@pytest.fixture
def default_theme():
    return BUILTIN_THEMES[0]


@pytest.fixture
def palette_theme():
    """Theme with a small raw palette."""
    colors = BUILTIN_THEMES[0].colors
    return Theme(
        name='Palette Theme',
        colors=ThemeColors(**{**colors.as_dict(), 'red': '#ef4444'}),
        palette={'base08': '#aa0000', 'base0D': '#0000aa', 'surface0': '#313244'},
    )


@pytest.fixture
def base16_yaml():
    return BASE16_YAML


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep tests away from the real starship.toml and preferences."""
    import starship_configurator
    monkeypatch.setenv('STARSHIP_CONFIG', str(tmp_path / 'missing' / 'starship.toml'))
    monkeypatch.setattr(starship_configurator, 'PREFS_PATH', tmp_path / 'prefs' / 'preferences.json')
