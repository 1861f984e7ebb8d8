"""
Whole-prompt preview: renders a module list against a simulated
environment (path, git state, language versions, ...).
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from format_engine import render
from module_registry import ModuleRegistry, UnknownModuleError
from starship_models import (
    LINE_BREAK,
    TEXT,
    ModuleDefinition,
    ModuleInstance,
    ParsedStyle,
    Segment,
    Theme,
)

logger = logging.getLogger(__name__)

LANGUAGE_MODULES = ('nodejs', 'golang', 'rust', 'python', 'java', 'kotlin', 'dotnet', 'terraform')
GIT_MODULES = ('git_branch', 'git_status')

# Fallback bindings for variables the context does not cover
MOCK_VARIABLES: Dict[str, Dict[str, str]] = {
    'directory': {'$path': '~/projects/starship-architect', '$read_only': '🔒'},
    'git_branch': {'$symbol': ' ', '$branch': 'main'},
    'git_status': {'$all_status': '!', '$ahead_behind': '⇡1'},
    'nodejs': {'$symbol': ' ', '$version': 'v18.16.0'},
    'rust': {'$symbol': ' ', '$version': '1.70.0'},
    'python': {'$symbol': '🐍 ', '$version': '3.11.3', '$virtualenv': 'venv', '$pyenv_prefix': ''},
    'docker_context': {'$symbol': ' ', '$context': 'default'},
    'aws': {'$symbol': '☁️  ', '$profile': 'dev-account', '$region': 'us-east-1'},
    'cmd_duration': {'$duration': '2s'},
    'character': {'$symbol': '❯'},
}


@dataclass(frozen=True)
class GitState:
    branch: str
    status: str = ''


@dataclass(frozen=True)
class PreviewContext:
    """A simulated shell environment for the preview."""
    id: str
    name: str
    path: str
    os: str = 'linux'
    time: str = '12:00:00'
    git: Optional[GitState] = None
    languages: Dict[str, str] = field(default_factory=dict)
    package_version: Optional[str] = None
    docker_context: Optional[str] = None


PREDEFINED_CONTEXTS: List[PreviewContext] = [
    PreviewContext(id='home', name='Home', path='~', time='14:30:00'),
    PreviewContext(
        id='git-repo', name='Git Repo', path='~/projects/starship',
        git=GitState(branch='main', status='?'), time='14:35:00',
    ),
    PreviewContext(
        id='go-project', name='Go Project', path='~/go/src/github.com/user/project',
        git=GitState(branch='feature/api', status='!'), languages={'golang': '1.21.0'},
        os='macos', time='15:00:00',
    ),
    PreviewContext(
        id='node-project', name='Node Project', path='~/dev/react-app',
        git=GitState(branch='fix/layout', status='+'), languages={'nodejs': '20.5.0'},
        package_version='1.0.0', os='windows', time='16:20:00',
    ),
    PreviewContext(
        id='container', name='Container', path='/app/src',
        git=GitState(branch='main', status=' +'), docker_context='default',
        time='17:45:00',
    ),
]


def get_context(context_id: str) -> Optional[PreviewContext]:
    return next((ctx for ctx in PREDEFINED_CONTEXTS if ctx.id == context_id), None)


def should_show_module(module_type: str, context: PreviewContext) -> bool:
    """Whether a module would appear at all in the given environment."""
    if module_type in GIT_MODULES:
        return context.git is not None
    if module_type == 'package':
        return bool(context.package_version)
    if module_type in LANGUAGE_MODULES:
        return bool(context.languages.get(module_type))
    return True


def _context_value(module_type: str, variable: str, context: PreviewContext) -> Optional[str]:
    if module_type == 'directory' and variable == '$path':
        return context.path
    if module_type == 'git_branch' and variable == '$branch':
        return context.git.branch if context.git else ''
    if module_type == 'git_status' and variable in ('$all_status', '$ahead_behind'):
        return context.git.status if context.git else ''
    if variable == '$version' and context.languages.get(module_type):
        return context.languages[module_type]
    if module_type == 'package' and variable == '$version':
        return context.package_version or ''
    if module_type == 'time' and variable == '$time':
        return context.time
    if module_type == 'docker_context' and variable == '$context' and context.docker_context:
        return context.docker_context
    return None


def build_variables(module: ModuleInstance, definition: ModuleDefinition,
                    context: PreviewContext) -> Dict[str, str]:
    """
    Build the variable bindings for one module.

    Each variable the definition exposes is taken, in order of preference,
    from the context, from a property of the same name, or from mock data.
    The character module's `$symbol` is its `success_symbol`.
    """
    variables: Dict[str, str] = {}
    for variable in definition.variables:
        key = variable[1:]
        if module.type == 'character' and variable == '$symbol':
            variables[variable] = str(
                module.properties.get('success_symbol')
                or definition.default_props.get('success_symbol')
                or '❯'
            )
            continue

        value = _context_value(module.type, variable, context)
        if value is None:
            prop = module.properties.get(key)
            if prop and isinstance(prop, (str, int, float)) and not isinstance(prop, bool):
                value = str(prop)
            else:
                value = MOCK_VARIABLES.get(module.type, {}).get(variable, '')
        variables[variable] = value
    return variables


def render_module(module: ModuleInstance, registry: ModuleRegistry, theme: Theme,
                  context: PreviewContext) -> List[Segment]:
    """
    Render a single module.

    Raises:
        UnknownModuleError: If the module type has no definition
    """
    if module.type == TEXT:
        return render(str(module.properties.get('format', '')), {}, '', theme)

    definition = registry.require(module.type)
    template = module.properties.get('format') or definition.default_props.get('format') or ''
    style = module.properties.get('style') or definition.default_props.get('style') or ''
    variables = build_variables(module, definition, context)
    return render(str(template), variables, str(style), theme)


def render_prompt(modules: List[ModuleInstance], registry: ModuleRegistry, theme: Theme,
                  context: PreviewContext) -> List[Segment]:
    """Render the whole prompt; line breaks become "\\n" segments."""
    segments: List[Segment] = []
    for module in modules:
        if module.disabled or not should_show_module(module.type, context):
            continue
        if module.type == LINE_BREAK:
            segments.append(Segment('\n', ParsedStyle()))
            continue
        try:
            segments.extend(render_module(module, registry, theme, context))
        except UnknownModuleError as e:
            logger.warning("Skipping module in preview: %s", e)
    return segments
