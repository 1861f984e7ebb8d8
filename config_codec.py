"""
Convert between an ordered module list and starship.toml text.
"""
import logging
import re
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

import tomlkit
from tomlkit.exceptions import InvalidStringError, TOMLKitError

from module_registry import ModuleRegistry
from starship_models import (
    LINE_BREAK,
    TEXT,
    ModuleInstance,
    PropertyKind,
    PropertyValue,
    Theme,
    property_kind,
)
from theme_manager import palette_name_for, theme_to_starship_palette

logger = logging.getLogger(__name__)

HEADER_LINES = (
    "Starship Configuration",
    "Generated by Starship Architect",
)

# `$identifier` or a run of literal text (escapes and lone `$` included)
_FORMAT_TOKEN_RE = re.compile(
    r"\$([A-Za-z0-9_]+)|((?:\\.|\\\Z|[^$\\]|\$(?![A-Za-z0-9_]))+)",
    re.DOTALL,
)


class InvalidConfigError(ValueError):
    """The configuration text is not valid TOML."""


@dataclass
class GlobalConfig:
    """Top-level prompt settings. None means the key is absent."""
    add_newline: Optional[bool] = None
    command_timeout: Optional[int] = None
    scan_timeout: Optional[int] = None
    palette: Optional[str] = None
    right_format: Optional[str] = None
    continuation_prompt: Optional[str] = None
    palettes: Dict[str, Dict[str, str]] = field(default_factory=dict)


@dataclass
class ParsedConfig:
    modules: List[ModuleInstance]
    settings: GlobalConfig


# --- Generation ---

def _string_item(value: str):
    """Single-quoted literal string, or a basic string when a literal can't hold the value."""
    try:
        return tomlkit.string(value, literal=True)
    except InvalidStringError:
        return tomlkit.string(value)


def _property_item(value: PropertyValue):
    kind = property_kind(value)
    if kind is PropertyKind.STRING:
        return _string_item(value)
    if kind is PropertyKind.BOOLEAN:
        return tomlkit.item(value)
    if kind is PropertyKind.NUMBER:
        return tomlkit.item(value)
    if kind is PropertyKind.STRING_MAP:
        table = tomlkit.inline_table()
        for key, entry in value.items():
            table[key] = _string_item(str(entry))
        return table
    raise TypeError(f"Unhandled property kind: {kind}")


def _close_trailing_escape(text: str) -> str:
    """Double an odd trailing backslash so it cannot escape the next module's `$`."""
    trailing = len(text) - len(text.rstrip('\\'))
    return text + '\\' if trailing % 2 else text


def build_format_string(modules: List[ModuleInstance]) -> str:
    """Concatenate the master `format` value for a module list."""
    parts = []
    for module in modules:
        if module.type == LINE_BREAK:
            parts.append('$line_break')
        elif module.type == TEXT:
            parts.append(_close_trailing_escape(str(module.properties.get('format', ''))))
        else:
            parts.append(f"${module.type}")
    return ''.join(parts)


def generate_config(modules: List[ModuleInstance], settings: Optional[GlobalConfig] = None) -> str:
    """
    Serialize a module list and global settings into starship.toml text.

    Args:
        modules: Modules in prompt order
        settings: Global settings; absent values are not written

    Returns:
        TOML text
    """
    settings = settings or GlobalConfig()
    doc = tomlkit.document()
    for line in HEADER_LINES:
        doc.add(tomlkit.comment(line))
    doc.add(tomlkit.nl())

    if settings.add_newline is not None:
        doc['add_newline'] = settings.add_newline
    if settings.command_timeout is not None:
        doc['command_timeout'] = settings.command_timeout
    if settings.scan_timeout is not None:
        doc['scan_timeout'] = settings.scan_timeout
    if settings.palette:
        doc['palette'] = _string_item(settings.palette)

    doc['format'] = tomlkit.string(build_format_string(modules), multiline=True)
    if settings.right_format:
        doc['right_format'] = tomlkit.string(settings.right_format, multiline=True)
    if settings.continuation_prompt:
        doc['continuation_prompt'] = _string_item(settings.continuation_prompt)

    for module in modules:
        if module.type in (LINE_BREAK, TEXT):
            continue
        if module.type in doc:
            logger.warning("Module '%s' appears more than once; only the first section is written", module.type)
            continue
        section = tomlkit.table()
        section['disabled'] = module.disabled
        for key, value in module.properties.items():
            if key == 'disabled':
                continue
            section[key] = _property_item(value)
        doc[module.type] = section

    if settings.palettes:
        palettes = tomlkit.table(is_super_table=True)
        for name, colors in settings.palettes.items():
            palette = tomlkit.table()
            for key, color in colors.items():
                palette[key] = _string_item(color)
            palettes[name] = palette
        doc['palettes'] = palettes

    text = doc.as_string()
    logger.debug("Generated config for %d modules (%d chars)", len(modules), len(text))
    return text


def embed_theme_palette(settings: Optional[GlobalConfig], theme: Theme) -> GlobalConfig:
    """Return settings that select and embed the theme's palette, if it has one."""
    settings = settings or GlobalConfig()
    palette = theme_to_starship_palette(theme)
    if not palette:
        return settings
    name = palette_name_for(theme)
    palettes = dict(settings.palettes)
    palettes[name] = palette
    return replace(settings, palette=name, palettes=palettes)


# --- Parsing ---

def _coerce_property(module_type: str, key: str, value: Any) -> Optional[PropertyValue]:
    """Map a TOML value onto the supported property kinds, or None to drop it."""
    if isinstance(value, dict):
        return {str(k): str(v) for k, v in value.items()}
    try:
        property_kind(value)
    except TypeError:
        logger.warning("Dropping unsupported value for %s.%s: %r", module_type, key, value)
        return None
    return value


def _build_module(module_type: str, data: Dict[str, Any], registry: ModuleRegistry) -> ModuleInstance:
    definition = registry.require(module_type)
    section = data.get(module_type)
    if section is None:
        section = {}
    elif not isinstance(section, dict):
        logger.warning("Ignoring non-table value for module '%s'", module_type)
        section = {}

    properties = dict(definition.default_props)
    for key, value in section.items():
        if key == 'disabled':
            continue
        coerced = _coerce_property(module_type, key, value)
        if coerced is not None:
            properties[key] = coerced
    return ModuleInstance.create(module_type, properties, disabled=section.get('disabled') is True)


def _modules_from_format(format_str: str, data: Dict[str, Any], registry: ModuleRegistry) -> List[ModuleInstance]:
    modules = []
    for match in _FORMAT_TOKEN_RE.finditer(format_str):
        name, literal = match.group(1), match.group(2)
        if literal:
            modules.append(ModuleInstance.create(TEXT, {'format': literal}))
        elif name == LINE_BREAK:
            modules.append(ModuleInstance.create(LINE_BREAK))
        elif name in registry:
            modules.append(_build_module(name, data, registry))
        else:
            logger.warning("Skipping unknown module '$%s' in format", name)
    return modules


def _modules_from_sections(data: Dict[str, Any], registry: ModuleRegistry) -> List[ModuleInstance]:
    # No explicit order or literal text here: sections come back in document order
    modules = []
    for key in data:
        if key not in registry:
            continue
        if key == LINE_BREAK:
            modules.append(ModuleInstance.create(LINE_BREAK))
        else:
            modules.append(_build_module(key, data, registry))
    return modules


def _parse_settings(data: Dict[str, Any]) -> GlobalConfig:
    settings = GlobalConfig()
    if isinstance(data.get('add_newline'), bool):
        settings.add_newline = data['add_newline']
    for key in ('command_timeout', 'scan_timeout'):
        value = data.get(key)
        if isinstance(value, int) and not isinstance(value, bool):
            setattr(settings, key, value)
    for key in ('palette', 'right_format', 'continuation_prompt'):
        if isinstance(data.get(key), str):
            setattr(settings, key, data[key])

    palettes = data.get('palettes')
    if isinstance(palettes, dict):
        for name, colors in palettes.items():
            if isinstance(colors, dict):
                settings.palettes[name] = {str(k): str(v) for k, v in colors.items()}
    return settings


def parse_config(text: str, registry: ModuleRegistry) -> ParsedConfig:
    """
    Parse starship.toml text into modules and global settings.

    Args:
        text: TOML text
        registry: Module definitions used to recognise module types

    Returns:
        The parsed configuration

    Raises:
        InvalidConfigError: If the text is not valid TOML
    """
    try:
        data = tomlkit.parse(text).unwrap()
    except TOMLKitError as e:
        raise InvalidConfigError(f"Invalid TOML format: {e}") from e

    format_str = data.get('format')
    if isinstance(format_str, str):
        modules = _modules_from_format(format_str, data, registry)
    else:
        modules = _modules_from_sections(data, registry)

    logger.debug("Parsed %d modules from config", len(modules))
    return ParsedConfig(modules=modules, settings=_parse_settings(data))


def parse_modules(text: str, registry: ModuleRegistry) -> List[ModuleInstance]:
    """Parse starship.toml text into its module list."""
    return parse_config(text, registry).modules
