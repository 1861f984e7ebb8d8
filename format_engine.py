"""
Format-string engine.

Renders Starship format strings into styled segments. A format string is
made of literal text, `\\X` escapes, `$variable` references, optional
groups `( ... )` and style blocks `[content](style)`.

Rendering happens in three passes over the text:

1. optional groups are kept or dropped depending on the variable bindings,
2. `$style` and every other `$variable` are substituted in a single
   left-to-right pass (substituted values are never rescanned),
3. the result is parsed into segments, style blocks recursing into their
   content with the block style merged underneath.

Passes 1 and 2 share one token list, so `$identifier` boundaries are fixed
by the template itself. Escapes survive both untouched and are only
unescaped in pass 3.
"""
import logging
import re
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from starship_models import ParsedStyle, Segment, Theme
from style_resolver import parse_style_string

logger = logging.getLogger(__name__)

MAX_STYLE_DEPTH = 10

_VARIABLE_RE = re.compile(r"\$[A-Za-z0-9_]+")

_ESCAPE = 'escape'
_VARIABLE = 'variable'
_CHAR = 'char'


def render(template: str, variables: Optional[Mapping[str, str]] = None,
           base_style: str = "", theme: Optional[Theme] = None) -> List[Segment]:
    """
    Render a format string into styled segments.

    Args:
        template: The format string
        variables: Bindings keyed by `$name` (a bare `name` key is accepted too)
        base_style: Value substituted for `$style`
        theme: Theme used to resolve colors

    Returns:
        Segments in display order; empty for an empty template
    """
    if not template:
        return []
    variables = variables or {}
    tokens = _resolve_group_tokens(list(_scan(template)), variables)
    substituted = _substitute_tokens(tokens, variables, base_style)
    return _SegmentParser(substituted, theme).parse()


# --- Tokens ---

Token = Tuple[str, str]


def _scan(text: str) -> Iterator[Token]:
    """Yield (kind, text) tokens: escapes, variable references and single chars."""
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == '\\':
            yield _ESCAPE, text[i:i + 2]
            i += 2
            continue
        if ch == '$':
            match = _VARIABLE_RE.match(text, i)
            if match:
                yield _VARIABLE, match.group(0)
                i = match.end()
                continue
        yield _CHAR, ch
        i += 1


def _lookup(variables: Mapping[str, str], token: str) -> str:
    value = variables.get(token)
    if value is None:
        value = variables.get(token[1:])
    return '' if value is None else str(value)


def variable_references(text: str) -> List[str]:
    """Return the unescaped `$name` references in text, in order."""
    return [value for kind, value in _scan(text) if kind == _VARIABLE]


# --- Pass 1: optional groups ---

def _is_char(token: Token, ch: str) -> bool:
    return token[0] == _CHAR and token[1] == ch


def _find_group_end(tokens: List[Token], start: int) -> int:
    """Index of the `)` token closing the `(` at `start`, or -1."""
    depth = 0
    for i in range(start, len(tokens)):
        if _is_char(tokens[i], '('):
            depth += 1
        elif _is_char(tokens[i], ')'):
            depth -= 1
            if depth == 0:
                return i
    return -1


def _group_is_visible(inner: List[Token], variables: Mapping[str, str]) -> bool:
    references = [value for kind, value in inner if kind == _VARIABLE]
    return not references or any(_lookup(variables, ref) for ref in references)


def _resolve_group_tokens(tokens: List[Token], variables: Mapping[str, str]) -> List[Token]:
    # Works on tokens so a kept group never merges with its neighbours
    # into a longer `$identifier`
    out: List[Token] = []
    after_bracket = False
    i = 0
    while i < len(tokens):
        token = tokens[i]
        if _is_char(token, '(') and not after_bracket:
            end = _find_group_end(tokens, i)
            if end != -1:
                inner = tokens[i + 1:end]
                if _group_is_visible(inner, variables):
                    out.extend(_resolve_group_tokens(inner, variables))
                after_bracket = False
                i = end + 1
                continue
        out.append(token)
        after_bracket = _is_char(token, ']')
        i += 1
    return out


def resolve_optional_groups(template: str, variables: Mapping[str, str]) -> str:
    """
    Keep or drop every optional group in the template.

    A group is kept (without its parentheses) when it references no
    variables or at least one referenced variable is bound to a non-empty
    value. A `(` right after `]` opens a style, not a group.

    The returned text is for inspection only: feeding it back into
    substitute_variables may join a kept group onto a preceding variable
    name. render() keeps the token boundaries instead.
    """
    return ''.join(value for _, value in _resolve_group_tokens(list(_scan(template)), variables))


# --- Pass 2: substitution ---

def _substitute_tokens(tokens: Iterable[Token], variables: Mapping[str, str], base_style: str) -> str:
    out: List[str] = []
    for kind, value in tokens:
        if kind == _VARIABLE:
            out.append((base_style or '') if value == '$style' else _lookup(variables, value))
        else:
            out.append(value)
    return ''.join(out)


def substitute_variables(template: str, variables: Mapping[str, str], base_style: str = "") -> str:
    """
    Substitute `$style` and bound variables in one pass.

    Unbound variables become empty strings. Escapes are copied through.
    """
    return _substitute_tokens(_scan(template), variables, base_style)


# --- Pass 3: structure ---

class _SegmentParser:
    """Recursive-descent parser turning substituted text into segments."""

    def __init__(self, text: str, theme: Optional[Theme], depth: int = 0):
        self.text = text
        self.theme = theme
        self.depth = depth
        self.pos = 0
        self.segments: List[Segment] = []
        self.buffer: List[str] = []

    def parse(self) -> List[Segment]:
        if self.depth > MAX_STYLE_DEPTH:
            logger.debug("Style nesting deeper than %d levels, emitting text as-is", MAX_STYLE_DEPTH)
            return [Segment(self.text)] if self.text else []

        while self.pos < len(self.text):
            ch = self.text[self.pos]
            if ch == '\\':
                self._escape()
            elif ch == '[' and self._style_block():
                continue
            else:
                self.buffer.append(ch)
                self.pos += 1

        self._flush()
        return self.segments

    def _escape(self):
        if self.pos + 1 < len(self.text):
            self.buffer.append(self.text[self.pos + 1])
            self.pos += 2
        else:
            # Trailing backslash
            self.buffer.append('\\')
            self.pos += 1

    def _style_block(self) -> bool:
        """Consume `[content](style)` at the cursor. Returns False if there is none."""
        close = self._matching_bracket(self.pos)
        if close == -1 or close + 1 >= len(self.text) or self.text[close + 1] != '(':
            return False
        style_end = self._closing_paren(close + 2)
        if style_end == -1:
            return False

        self._flush()
        content = self.text[self.pos + 1:close]
        block_style = parse_style_string(self.text[close + 2:style_end], self.theme)
        inner = _SegmentParser(content, self.theme, self.depth + 1).parse()
        self.segments.extend(
            Segment(segment.text, segment.style.merged_over(block_style))
            for segment in inner
        )
        self.pos = style_end + 1
        return True

    def _matching_bracket(self, start: int) -> int:
        depth = 0
        i = start
        while i < len(self.text):
            ch = self.text[i]
            if ch == '\\':
                i += 2
                continue
            if ch == '[':
                depth += 1
            elif ch == ']':
                depth -= 1
                if depth == 0:
                    return i
            i += 1
        return -1

    def _closing_paren(self, start: int) -> int:
        i = start
        while i < len(self.text):
            ch = self.text[i]
            if ch == '\\':
                i += 2
                continue
            if ch == ')':
                return i
            i += 1
        return -1

    def _flush(self):
        if self.buffer:
            self.segments.append(Segment(''.join(self.buffer), ParsedStyle()))
            self.buffer = []


def render_plain(template: str, variables: Optional[Dict[str, str]] = None,
                 base_style: str = "", theme: Optional[Theme] = None) -> str:
    """Render a format string and return only its text."""
    return ''.join(segment.text for segment in render(template, variables, base_style, theme))
