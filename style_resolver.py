"""
Resolve Starship style strings ("bold red bg:#1e1e2e") against a theme.
"""
from typing import Dict, List, Optional

from starship_models import ParsedStyle, Theme
from theme_manager import DEFAULT_THEME

COLOR_ALIASES = {
    'magenta': 'purple',
}

# Modifiers kept by the style editing helpers
STYLE_MODIFIERS = ('bold', 'dimmed', 'italic', 'underline', 'inverted')

_FLAG_TOKENS = {
    'bold': 'bold',
    'italic': 'italic',
    'underline': 'underline',
}


def resolve_color(token: str, theme: Optional[Theme] = None) -> str:
    """
    Resolve a color token to a concrete color.

    Lookup order: hex passthrough, theme named slot, theme palette key,
    default theme named slot, then the token itself.

    Args:
        token: Color token from a style string (e.g. "red", "#ff0000", "base0D")
        theme: Active theme

    Returns:
        A hex color, or the token unchanged when nothing matches
    """
    if not token:
        return 'inherit'
    if token.startswith('#'):
        return token

    normalized = token.lower()
    normalized = COLOR_ALIASES.get(normalized, normalized)

    if theme is not None:
        named = theme.colors.get(normalized)
        if named:
            return named
        # Palette keys are case-sensitive (base0A vs base0a)
        if theme.palette and theme.palette.get(token):
            return theme.palette[token]

    return DEFAULT_THEME.colors.get(normalized) or token


def parse_style_string(style: str, theme: Optional[Theme] = None) -> ParsedStyle:
    """
    Parse a style string such as "red bold bg:blue".

    Tokens are classified independently; the last token wins per field.
    """
    if not style:
        return ParsedStyle()

    attrs: Dict[str, object] = {}
    for token in style.split():
        if token in _FLAG_TOKENS:
            attrs[_FLAG_TOKENS[token]] = True
        elif token.startswith('bg:'):
            attrs['background'] = resolve_color(token[3:], theme)
        elif token.startswith('fg:'):
            attrs['foreground'] = resolve_color(token[3:], theme)
        else:
            attrs['foreground'] = resolve_color(token, theme)
    return ParsedStyle(**attrs)


def _split_style(style: str):
    tokens = style.split() if style else []
    colors: List[str] = [t for t in tokens if t not in STYLE_MODIFIERS]
    modifiers: List[str] = [t for t in tokens if t in STYLE_MODIFIERS]
    return colors, modifiers


def set_style_color(style: str, color: str) -> str:
    """Replace the color tokens of a style string, keeping its modifiers."""
    _, modifiers = _split_style(style)
    return ' '.join([color, *modifiers])


def toggle_modifier(style: str, modifier: str) -> str:
    """Add `modifier` to a style string, or remove it if already present."""
    if modifier not in STYLE_MODIFIERS:
        raise ValueError(f"Unknown style modifier: {modifier}")
    colors, modifiers = _split_style(style)
    if modifier in modifiers:
        modifiers = [m for m in modifiers if m != modifier]
    else:
        modifiers.append(modifier)
    return ' '.join(colors + modifiers)
