"""
Data model shared by the format-string engine and the configuration codec.
"""
import copy
import uuid
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

# Pseudo module types that never get a configuration section
LINE_BREAK = "line_break"
TEXT = "text"

PropertyValue = Union[str, int, float, bool, Dict[str, str]]


# --- Property Values ---

class PropertyKind(Enum):
    """The closed set of value kinds a module property may hold."""
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    STRING_MAP = "string_map"


def property_kind(value: Any) -> PropertyKind:
    """
    Classify a property value.

    Args:
        value: Property value from a module instance

    Returns:
        The kind of the value

    Raises:
        TypeError: If the value is not one of the supported kinds
    """
    # bool is an int subclass, so it has to be checked first
    if isinstance(value, bool):
        return PropertyKind.BOOLEAN
    if isinstance(value, (int, float)):
        return PropertyKind.NUMBER
    if isinstance(value, str):
        return PropertyKind.STRING
    if isinstance(value, dict) and all(isinstance(k, str) for k in value):
        return PropertyKind.STRING_MAP
    raise TypeError(f"Unsupported property value: {value!r}")


# --- Modules ---

@dataclass(frozen=True)
class ModuleDefinition:
    """Registry entry describing a module type."""
    name: str
    description: str = ""
    default_props: Dict[str, PropertyValue] = field(default_factory=dict)
    variables: Tuple[str, ...] = ()


@dataclass
class ModuleInstance:
    """A module placed in the prompt, owned by exactly one module list."""
    id: str
    type: str
    disabled: bool = False
    properties: Dict[str, PropertyValue] = field(default_factory=dict)

    @classmethod
    def create(cls, module_type: str, properties: Optional[Dict[str, PropertyValue]] = None,
               disabled: bool = False) -> "ModuleInstance":
        return cls(
            id=uuid.uuid4().hex[:9],
            type=module_type,
            disabled=disabled,
            properties=copy.deepcopy(dict(properties or {})),
        )

    @property
    def is_line_break(self) -> bool:
        return self.type == LINE_BREAK

    @property
    def is_text(self) -> bool:
        return self.type == TEXT


# --- Themes ---

@dataclass(frozen=True)
class ThemeColors:
    """The twelve named colour slots every theme defines."""
    bg: str
    fg: str
    black: str
    red: str
    green: str
    yellow: str
    blue: str
    purple: str
    cyan: str
    white: str
    orange: str
    gray: str

    def get(self, name: str) -> Optional[str]:
        """Return the colour stored in slot `name`, or None for unknown slots."""
        if name in COLOR_SLOTS:
            return getattr(self, name)
        return None

    def as_dict(self) -> Dict[str, str]:
        return {slot: getattr(self, slot) for slot in COLOR_SLOTS}


COLOR_SLOTS = tuple(f.name for f in fields(ThemeColors))


@dataclass(frozen=True)
class Theme:
    """Named colours plus an optional raw palette (e.g. base00..base17)."""
    name: str
    colors: ThemeColors
    palette: Optional[Dict[str, str]] = None
    author: Optional[str] = None
    variant: Optional[str] = None
    system: Optional[str] = None


# --- Rendering ---

@dataclass(frozen=True)
class ParsedStyle:
    """A resolved rendering instruction. None means "not set"."""
    foreground: Optional[str] = None
    background: Optional[str] = None
    bold: Optional[bool] = None
    italic: Optional[bool] = None
    underline: Optional[bool] = None

    @property
    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    def merged_over(self, base: "ParsedStyle") -> "ParsedStyle":
        """Return `base` with every field set on this style overriding it."""
        overrides = {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }
        return replace(base, **overrides)


@dataclass(frozen=True)
class Segment:
    """One run of text and the style it is drawn with."""
    text: str
    style: ParsedStyle = ParsedStyle()
