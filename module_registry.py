"""
Module registry: default properties, exposed variables and descriptions
for every module type the engine and codec know about.
"""
import logging
from typing import Dict, Iterable, Iterator, List, Optional

from starship_models import LINE_BREAK, ModuleDefinition, ModuleInstance

logger = logging.getLogger(__name__)

# Every module Starship ships
STARSHIP_MODULES = [
    "aws", "azure", "battery", "buf", "bun", "c", "character", "cmake",
    "cmd_duration", "cobol", "conda", "container", "crystal", "daml",
    "dart", "deno", "directory", "direnv", "docker_context", "dotnet",
    "elixir", "elm", "env_var", "erlang", "fennel", "fill", "fossil_branch",
    "fossil_metrics", "gcloud", "git_branch", "git_commit", "git_metrics",
    "git_state", "git_status", "golang", "gradle", "guix_shell", "haskell",
    "haxe", "helm", "hostname", "java", "jobs", "julia", "kotlin", "kubernetes",
    "line_break", "localip", "lua", "memory_usage", "meson", "nats", "nim",
    "nix_shell", "nodejs", "ocaml", "opa", "openstack", "os", "package",
    "perl", "php", "pijul_channel", "pulumi", "purescript", "python", "raku",
    "red", "rlang", "ruby", "rust", "scala", "shell", "shlvl", "singularity",
    "solidity", "spack", "status", "sudo", "swift", "terraform", "time",
    "typst", "username", "vagrant", "vcsh", "vlang", "zig"
]

BUILTIN_DEFINITIONS = [
    ModuleDefinition(
        name='directory',
        description='Current working directory',
        default_props={
            'format': '[$path]($style)[$read_only]($read_only_style) ',
            'style': 'cyan bold',
            'read_only': '🔒',
            'read_only_style': 'red',
            'truncation_length': 3,
            'truncation_symbol': '…/',
        },
        variables=('$path', '$read_only'),
    ),
    ModuleDefinition(
        name='git_branch',
        description='Active git branch',
        default_props={
            'format': 'on [$symbol$branch]($style) ',
            'symbol': ' ',
            'style': 'purple bold',
        },
        variables=('$symbol', '$branch'),
    ),
    ModuleDefinition(
        name='git_status',
        description='Git status symbols',
        default_props={
            'format': '([$all_status$ahead_behind]($style) )',
            'style': 'red bold',
            'conflicted': '🏳',
            'ahead': '⇡',
            'behind': '⇣',
            'diverged': '⇕',
            'untracked': '?',
            'stashed': '$',
            'modified': '!',
            'staged': '+',
            'renamed': '»',
            'deleted': '✘',
        },
        variables=('$all_status', '$ahead_behind', '$conflicted', '$ahead', '$behind'),
    ),
    ModuleDefinition(
        name='nodejs',
        description='Node.js version',
        default_props={
            'format': 'via [$symbol($version)]($style) ',
            'symbol': ' ',
            'style': 'green bold',
        },
        variables=('$symbol', '$version'),
    ),
    ModuleDefinition(
        name='rust',
        description='Rust version',
        default_props={
            'format': 'via [$symbol($version)]($style) ',
            'symbol': ' ',
            'style': 'red bold',
        },
        variables=('$symbol', '$version'),
    ),
    ModuleDefinition(
        name='python',
        description='Python version',
        default_props={
            'format': 'via [$symbol$pyenv_prefix($version)(\\($virtualenv\\))]($style) ',
            'symbol': '🐍 ',
            'style': 'yellow bold',
        },
        variables=('$symbol', '$version', '$virtualenv', '$pyenv_prefix'),
    ),
    ModuleDefinition(
        name='golang',
        description='Go version',
        default_props={
            'format': 'via [$symbol($version )]($style)',
            'symbol': '🐹 ',
            'style': 'cyan bold',
        },
        variables=('$symbol', '$version'),
    ),
    ModuleDefinition(
        name='package',
        description='Current project version from package metadata',
        default_props={
            'format': 'is [$symbol$version]($style) ',
            'symbol': '📦 ',
            'style': 'orange bold',
        },
        variables=('$symbol', '$version'),
    ),
    ModuleDefinition(
        name='docker_context',
        description='Docker context',
        default_props={
            'format': 'via [$symbol$context]($style) ',
            'symbol': ' ',
            'style': 'blue bold',
        },
        variables=('$symbol', '$context'),
    ),
    ModuleDefinition(
        name='aws',
        description='AWS profile',
        default_props={
            'format': 'on [$symbol($profile )(\\($region\\) )]($style)',
            'symbol': '☁️  ',
            'style': 'orange bold',
        },
        variables=('$symbol', '$profile', '$region'),
    ),
    ModuleDefinition(
        name='cmd_duration',
        description='Command duration',
        default_props={
            'format': 'took [$duration]($style) ',
            'style': 'yellow bold',
        },
        variables=('$duration',),
    ),
    ModuleDefinition(
        name='time',
        description='Current time',
        default_props={
            'format': 'at [$time]($style) ',
            'style': 'yellow bold',
        },
        variables=('$time',),
    ),
    ModuleDefinition(
        name=LINE_BREAK,
        description='Inserts a line break',
    ),
    ModuleDefinition(
        name='character',
        description='The prompt character (usually at the end)',
        default_props={
            'format': '$symbol ',
            'success_symbol': '[❯](green bold)',
            'error_symbol': '[❯](red bold)',
            'vicmd_symbol': '[❮](green bold)',
        },
        variables=('$symbol',),
    ),
]


class UnknownModuleError(KeyError):
    """Raised when a module type has no definition in the registry."""

    def __init__(self, module_type: str):
        super().__init__(module_type)
        self.module_type = module_type

    def __str__(self):
        return f"No module definition for '{self.module_type}'"


class ModuleRegistry:
    """Lookup table of module definitions, passed explicitly to the engine and codec."""

    def __init__(self, definitions: Iterable[ModuleDefinition] = ()):
        self._definitions: Dict[str, ModuleDefinition] = {}
        for definition in definitions:
            self.register(definition)

    def register(self, definition: ModuleDefinition):
        if definition.name in self._definitions:
            logger.debug("Replacing module definition '%s'", definition.name)
        self._definitions[definition.name] = definition

    def get(self, module_type: str) -> Optional[ModuleDefinition]:
        return self._definitions.get(module_type)

    def require(self, module_type: str) -> ModuleDefinition:
        """
        Get a module definition, failing on a miss.

        Raises:
            UnknownModuleError: If the type is not registered
        """
        definition = self._definitions.get(module_type)
        if definition is None:
            raise UnknownModuleError(module_type)
        return definition

    def names(self) -> List[str]:
        return list(self._definitions)

    def create_module(self, module_type: str) -> ModuleInstance:
        """Create a module instance populated with the type's default properties."""
        definition = self.require(module_type)
        return ModuleInstance.create(module_type, definition.default_props)

    def __contains__(self, module_type: object) -> bool:
        return module_type in self._definitions

    def __iter__(self) -> Iterator[ModuleDefinition]:
        return iter(self._definitions.values())

    def __len__(self) -> int:
        return len(self._definitions)


def default_registry() -> ModuleRegistry:
    """Registry with the detailed built-in definitions plus every other Starship module."""
    registry = ModuleRegistry(BUILTIN_DEFINITIONS)
    for name in STARSHIP_MODULES:
        if name not in registry:
            registry.register(ModuleDefinition(
                name=name,
                description=f"Configures the '{name}' module for your Starship prompt.",
            ))
    return registry
