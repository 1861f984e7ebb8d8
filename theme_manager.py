"""
Theme manager for the prompt preview.
Holds the built-in themes, converts terminal color schemes and imports
Base16/Base24 palettes.
"""
import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Dict, List, Optional, Union

import yaml

from starship_models import Theme, ThemeColors

logger = logging.getLogger(__name__)

BASE16_KEYS = tuple(f"base0{digit}" for digit in "0123456789ABCDEF")
BASE24_KEYS = tuple(f"base1{digit}" for digit in "01234567")

# Named theme slot -> Base16 palette slot
BASE16_COLOR_MAP = {
    'bg': 'base00',
    'fg': 'base05',
    'black': 'base01',
    'red': 'base08',
    'green': 'base0B',
    'yellow': 'base0A',
    'blue': 'base0D',
    'purple': 'base0E',
    'cyan': 'base0C',
    'white': 'base07',
    'orange': 'base09',
    'gray': 'base03',
}

INVALID_THEME_HINT = (
    "Invalid Base16 YAML. Please ensure it matches standard structure "
    "(palette: base00..base0F)."
)

BUILTIN_THEMES: List[Theme] = [
    Theme(
        name='Default',
        colors=ThemeColors(
            bg='#1e1e1e', fg='#d4d4d4', black='#000000', red='#ef4444',
            green='#22c55e', yellow='#eab308', blue='#3b82f6', purple='#a855f7',
            cyan='#06b6d4', white='#ffffff', orange='#f97316', gray='#6b7280',
        ),
    ),
    Theme(
        name='Catppuccin Mocha',
        colors=ThemeColors(
            bg='#1e1e2e', fg='#cdd6f4', black='#45475a', red='#f38ba8',
            green='#a6e3a1', yellow='#f9e2af', blue='#89b4fa', purple='#cba6f7',
            cyan='#89dceb', white='#bac2de', orange='#fab387', gray='#585b70',
        ),
    ),
    Theme(
        name='Tokyo Night',
        colors=ThemeColors(
            bg='#1a1b26', fg='#c0caf5', black='#414868', red='#f7768e',
            green='#9ece6a', yellow='#e0af68', blue='#7aa2f7', purple='#bb9af7',
            cyan='#7dcfff', white='#a9b1d6', orange='#ff9e64', gray='#565f89',
        ),
    ),
    Theme(
        name='Gruvbox Dark',
        colors=ThemeColors(
            bg='#282828', fg='#ebdbb2', black='#928374', red='#cc241d',
            green='#98971a', yellow='#d79921', blue='#458588', purple='#b16286',
            cyan='#689d6a', white='#a89984', orange='#d65d0e', gray='#a89984',
        ),
    ),
    Theme(
        name='Dracula',
        colors=ThemeColors(
            bg='#282a36', fg='#f8f8f2', black='#6272a4', red='#ff5555',
            green='#50fa7b', yellow='#f1fa8c', blue='#bd93f9', purple='#ff79c6',
            cyan='#8be9fd', white='#f8f8f2', orange='#ffb86c', gray='#44475a',
        ),
    ),
]

DEFAULT_THEME = BUILTIN_THEMES[0]


def ensure_hex_prefix(color: str) -> str:
    """Ensure a color has a leading '#'."""
    if not color:
        return color
    return color if color.startswith('#') else f"#{color}"


def import_base16_or_24(yaml_text: str) -> Optional[Theme]:
    """
    Parse a Base16/Base24 YAML scheme into a Theme.

    Args:
        yaml_text: Scheme text with `name`, `author`, `variant`, `system`
            and a `palette` mapping of base00..base0F (+ base10..base17)

    Returns:
        The imported theme, or None if the text is not a valid scheme
    """
    try:
        # BaseLoader keeps every scalar a string, so hex values such as
        # 000000 or 001122 are not turned into numbers
        parsed = yaml.load(yaml_text, Loader=yaml.BaseLoader)
    except yaml.YAMLError as e:
        logger.warning("Failed to parse theme YAML: %s", e)
        return None

    if not isinstance(parsed, dict) or not isinstance(parsed.get('palette'), dict):
        logger.warning("Invalid Base16/Base24 YAML format: no palette mapping")
        return None

    source = parsed['palette']
    missing = [key for key in BASE16_KEYS if not source.get(key)]
    if missing:
        logger.warning("Theme palette is missing required keys: %s", ', '.join(missing))
        return None

    system = parsed.get('system') or 'base16'
    palette = {key: ensure_hex_prefix(str(source[key])) for key in BASE16_KEYS}
    if system == 'base24':
        for key in BASE24_KEYS:
            if source.get(key):
                palette[key] = ensure_hex_prefix(str(source[key]))

    colors = ThemeColors(**{slot: palette[key] for slot, key in BASE16_COLOR_MAP.items()})
    return Theme(
        name=parsed.get('name') or 'Custom Theme',
        colors=colors,
        palette=palette,
        author=parsed.get('author'),
        variant=parsed.get('variant') or 'dark',
        system=system,
    )


def theme_to_starship_palette(theme: Theme) -> Optional[Dict[str, str]]:
    """Return the theme's raw palette as a Starship palette, or None if it has none."""
    if not theme.palette:
        return None
    return {key: value for key, value in theme.palette.items() if value}


def palette_name_for(theme: Theme) -> str:
    """Derive the `[palettes.<name>]` key used when embedding a theme."""
    return '_'.join(theme.name.lower().split())


def apply_config_palette(theme: Theme, palette_name: Optional[str],
                         palettes: Optional[Dict[str, Dict[str, str]]]) -> Theme:
    """
    Swap in the palette a configuration selects.

    The theme's named colors are kept; the configuration's active palette
    becomes the raw palette so palette keys in styles resolve against it.
    """
    if not palette_name or not palettes or palette_name not in palettes:
        return theme
    return replace(theme, name=palette_name, palette=dict(palettes[palette_name]))


def theme_from_terminal_scheme(name: str, scheme: Dict[str, str]) -> Theme:
    """
    Convert a terminal color scheme (Windows Terminal style keys) to a Theme.

    Args:
        name: Theme name
        scheme: Mapping with background, foreground, ANSI and bright* colors

    Returns:
        Theme with every slot populated, missing ones taken from the default theme
    """
    fallback = DEFAULT_THEME.colors
    sources = {
        'bg': ('background',),
        'fg': ('foreground',),
        'black': ('black',),
        'red': ('red',),
        'green': ('green',),
        'yellow': ('yellow',),
        'blue': ('blue',),
        'purple': ('purple', 'magenta'),
        'cyan': ('cyan',),
        'white': ('white',),
        'orange': ('brightYellow', 'yellow'),
        'gray': ('brightBlack',),
    }
    colors = {}
    for slot, keys in sources.items():
        value = next((scheme[key] for key in keys if scheme.get(key)), None)
        colors[slot] = ensure_hex_prefix(value) if value else fallback.get(slot)
    return Theme(name=name, colors=ThemeColors(**colors))


class ThemeManager:
    """Catalog of themes available to the preview"""

    def __init__(self, themes_file: Optional[Union[str, Path]] = None):
        """
        Initialize theme manager.

        Args:
            themes_file: Optional path to a JSON file of terminal color schemes
        """
        self.themes_file = Path(themes_file) if themes_file else None
        self.themes: Dict[str, Theme] = {theme.name: theme for theme in BUILTIN_THEMES}
        if self.themes_file:
            self._load_themes()

    def _load_themes(self):
        """Load terminal color schemes from the JSON themes file"""
        try:
            with open(self.themes_file, 'r', encoding='utf-8') as f:
                schemes = json.load(f)
        except FileNotFoundError:
            logger.warning("Themes file not found: %s", self.themes_file)
            return
        except json.JSONDecodeError as e:
            logger.warning("Invalid themes JSON: %s", e)
            return

        if not isinstance(schemes, dict):
            logger.warning("Themes file must map theme names to schemes: %s", self.themes_file)
            return

        for name, scheme in schemes.items():
            if isinstance(scheme, dict):
                self.themes[name] = theme_from_terminal_scheme(name, scheme)
        logger.debug("Loaded %d themes from %s", len(schemes), self.themes_file)

    def get_theme_names(self) -> List[str]:
        """
        Get list of available theme names.

        Returns:
            List of theme names sorted alphabetically
        """
        return sorted(self.themes.keys())

    def get_theme(self, theme_name: str) -> Optional[Theme]:
        """
        Get theme by name.

        Args:
            theme_name: Name of the theme

        Returns:
            Theme or None if not found
        """
        return self.themes.get(theme_name)

    def add_theme(self, theme: Theme):
        self.themes[theme.name] = theme

    def import_theme(self, yaml_text: str) -> Optional[Theme]:
        """Import a Base16/Base24 scheme and add it to the catalog."""
        theme = import_base16_or_24(yaml_text)
        if theme is None:
            logger.warning(INVALID_THEME_HINT)
            return None
        self.add_theme(theme)
        return theme

    def import_theme_file(self, path: Union[str, Path]) -> Optional[Theme]:
        with open(path, 'r', encoding='utf-8') as f:
            return self.import_theme(f.read())
