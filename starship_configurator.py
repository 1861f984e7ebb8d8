import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional

# Third-party libraries
from rich.color import Color, ColorParseError
from rich.console import Console
from rich.style import Style
from rich.text import Text

# Local imports
from config_codec import (
    GlobalConfig,
    InvalidConfigError,
    ParsedConfig,
    embed_theme_palette,
    generate_config,
    parse_config,
)
from module_registry import ModuleRegistry, default_registry
from prompt_preview import PREDEFINED_CONTEXTS, get_context, render_prompt
from starship_models import LINE_BREAK, ModuleInstance, Segment, Theme
from theme_manager import DEFAULT_THEME, INVALID_THEME_HINT, ThemeManager, apply_config_palette

logger = logging.getLogger(__name__)

# --- Configuration Constants ---

APP_NAME = 'starship-architect'
PREFS_PATH = Path.home() / '.config' / 'starship-architect' / 'preferences.json'

DEFAULT_MODULE_ORDER = ['directory', 'git_branch', 'nodejs', LINE_BREAK, 'character']

EXIT_OK = 0
EXIT_INVALID_CONFIG = 1
EXIT_INVALID_THEME = 2


def detect_starship_config_path() -> Path:
    """Detect the Starship config path based on the operating system."""
    if 'STARSHIP_CONFIG' in os.environ:
        return Path(os.environ['STARSHIP_CONFIG'])

    if sys.platform == 'win32':
        candidates = [
            Path.home() / '.config' / 'starship.toml',
            Path(os.environ.get('APPDATA', '')) / 'starship' / 'starship.toml',
            Path.home() / 'starship.toml',
        ]
    else:
        candidates = [
            Path.home() / '.config' / 'starship.toml',
            Path(os.environ.get('XDG_CONFIG_HOME', Path.home() / '.config')) / 'starship.toml',
        ]

    for path in candidates:
        if path and path.exists():
            return path

    return Path.home() / '.config' / 'starship.toml'


# === Configuration Management ===

def default_modules(registry: ModuleRegistry) -> List[ModuleInstance]:
    """Create the starter module list used when no config exists."""
    return [registry.create_module(name) for name in DEFAULT_MODULE_ORDER]


def load_config_file(path: Path, registry: ModuleRegistry) -> ParsedConfig:
    """
    Load and parse a starship.toml file.

    Raises:
        OSError: If the file cannot be read
        InvalidConfigError: If the file is not valid TOML
    """
    with open(path, 'r', encoding='utf-8') as f:
        return parse_config(f.read(), registry)


def save_config_file(path: Path, modules: List[ModuleInstance],
                     settings: Optional[GlobalConfig] = None) -> Path:
    """Write a module list to a starship.toml file, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(generate_config(modules, settings))
    return path


def load_preferences(prefs_path: Optional[Path] = None) -> Dict:
    """Load user preferences from JSON file."""
    prefs_path = prefs_path or PREFS_PATH
    try:
        if prefs_path.exists():
            with open(prefs_path, 'r', encoding='utf-8') as f:
                prefs = json.load(f)
            if isinstance(prefs, dict):
                return prefs
            logger.warning("Ignoring preferences file without a JSON object: %s", prefs_path)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Failed to load preferences: %s", e)
    return {}


# === Terminal Rendering ===

def _to_rich_color(color: Optional[str]) -> Optional[Color]:
    if not color or color == 'inherit':
        return None
    try:
        return Color.parse(color)
    except ColorParseError:
        logger.debug("Terminal cannot show color '%s', dropping it", color)
        return None


def segments_to_text(segments: List[Segment]) -> Text:
    """Convert rendered segments into a rich Text."""
    text = Text()
    for segment in segments:
        style = segment.style
        text.append(segment.text, style=Style(
            color=_to_rich_color(style.foreground),
            bgcolor=_to_rich_color(style.background),
            bold=style.bold,
            italic=style.italic,
            underline=style.underline,
        ))
    return text


# === Command Line ===

def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Preview and convert Starship prompt configurations",
    )
    parser.add_argument('-v', '--verbose', action='store_true', help="Enable debug logging")
    parser.add_argument('--themes-file', type=Path, help="JSON file of extra terminal color schemes")
    subparsers = parser.add_subparsers(dest='command', required=True)

    preview = subparsers.add_parser('preview', help="Render the prompt in the terminal")
    preview.add_argument('config', nargs='?', type=Path, help="starship.toml (default: detected)")
    preview.add_argument('--theme', help="Theme name")
    preview.add_argument('--theme-file', type=Path, help="Base16/Base24 YAML scheme")
    preview.add_argument(
        '--context',
        choices=[ctx.id for ctx in PREDEFINED_CONTEXTS],
        help="Simulated environment",
    )

    export = subparsers.add_parser('export', help="Regenerate the configuration text")
    export.add_argument('config', nargs='?', type=Path, help="starship.toml (default: detected)")
    export.add_argument('-o', '--output', type=Path, help="Write to this file instead of stdout")
    export.add_argument('--embed-palette', action='store_true', help="Embed the theme's palette")
    export.add_argument('--theme', help="Theme name")
    export.add_argument('--theme-file', type=Path, help="Base16/Base24 YAML scheme")

    subparsers.add_parser('themes', help="List available themes")
    return parser


def _select_theme(args: argparse.Namespace, manager: ThemeManager, prefs: Dict,
                  errors: Console) -> Optional[Theme]:
    if getattr(args, 'theme_file', None):
        try:
            theme = manager.import_theme_file(args.theme_file)
        except OSError as e:
            errors.print(f"❌ Could not read theme file: {e}", markup=False)
            return None
        if theme is None:
            errors.print(f"❌ {INVALID_THEME_HINT}", markup=False)
        return theme

    name = getattr(args, 'theme', None) or prefs.get('theme') or DEFAULT_THEME.name
    theme = manager.get_theme(name)
    if theme is None:
        errors.print(f"❌ Unknown theme '{name}'. Available: {', '.join(manager.get_theme_names())}", markup=False)
    return theme


def _load_modules(path: Optional[Path], registry: ModuleRegistry, errors: Console) -> Optional[ParsedConfig]:
    config_path = path or detect_starship_config_path()
    if not config_path.exists():
        if path is not None:
            errors.print(f"❌ Config not found: {config_path}", markup=False)
            return None
        logger.info("No config at %s, using default modules", config_path)
        return ParsedConfig(modules=default_modules(registry), settings=GlobalConfig(add_newline=True))
    try:
        return load_config_file(config_path, registry)
    except InvalidConfigError as e:
        errors.print(f"❌ {e}", markup=False)
    except OSError as e:
        errors.print(f"❌ Could not load config: {e}", markup=False)
    return None


def main(argv: Optional[List[str]] = None) -> int:
    """Main application entry point."""
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    console = Console()
    errors = Console(stderr=True)
    manager = ThemeManager(themes_file=args.themes_file)
    prefs = load_preferences()

    if args.command == 'themes':
        for name in manager.get_theme_names():
            console.print(name, markup=False, highlight=False)
        return EXIT_OK

    theme = _select_theme(args, manager, prefs, errors)
    if theme is None:
        return EXIT_INVALID_THEME

    registry = default_registry()
    parsed = _load_modules(args.config, registry, errors)
    if parsed is None:
        return EXIT_INVALID_CONFIG

    if args.command == 'preview':
        context = get_context(args.context or prefs.get('context') or PREDEFINED_CONTEXTS[0].id)
        if context is None:
            errors.print(f"❌ Unknown preview context '{prefs.get('context')}'", markup=False)
            return EXIT_INVALID_THEME
        theme = apply_config_palette(theme, parsed.settings.palette, parsed.settings.palettes)
        segments = render_prompt(parsed.modules, registry, theme, context)
        console.print(segments_to_text(segments), highlight=False)
        return EXIT_OK

    settings = parsed.settings
    if args.embed_palette:
        if not theme.palette:
            errors.print(f"⚠️ Theme '{theme.name}' has no palette to embed", markup=False)
        settings = embed_theme_palette(settings, theme)
    if args.output:
        save_config_file(args.output, parsed.modules, settings)
        console.print(f"✅ Exported to: {args.output}", markup=False, highlight=False)
    else:
        console.out(generate_config(parsed.modules, settings), highlight=False, end='')
    return EXIT_OK


if __name__ == '__main__':
    sys.exit(main())
