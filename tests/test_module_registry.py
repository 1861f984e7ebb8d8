"""
Tests for the module registry and data model helpers.
"""
import pytest

from module_registry import STARSHIP_MODULES, ModuleRegistry, UnknownModuleError, default_registry
from starship_models import (
    LINE_BREAK,
    ModuleDefinition,
    ModuleInstance,
    ParsedStyle,
    PropertyKind,
    property_kind,
)


class TestModuleRegistry:
    """Test registry lookups."""

    def test_default_registry_knows_every_starship_module(self, registry):
        assert all(name in registry for name in STARSHIP_MODULES)
        assert len(registry) == len(set(STARSHIP_MODULES))

    def test_detailed_definition(self, registry):
        definition = registry.require('git_branch')
        assert definition.variables == ('$symbol', '$branch')
        assert definition.default_props['style'] == 'purple bold'

    def test_minimal_definition(self, registry):
        definition = registry.require('username')
        assert definition.default_props == {}
        assert definition.variables == ()

    def test_get_miss_returns_none(self, registry):
        assert registry.get('not_a_module') is None

    def test_require_miss_raises(self, registry):
        with pytest.raises(UnknownModuleError) as excinfo:
            registry.require('not_a_module')
        assert excinfo.value.module_type == 'not_a_module'
        assert isinstance(excinfo.value, KeyError)

    def test_create_module_copies_defaults(self, registry):
        module = registry.create_module('directory')
        module.properties['style'] = 'red'
        assert registry.require('directory').default_props['style'] == 'cyan bold'
        assert module.type == 'directory'
        assert module.disabled is False

    def test_create_module_copies_nested_defaults(self):
        registry = ModuleRegistry([
            ModuleDefinition(name='directory', default_props={'substitutions': {'~': 'home'}}),
        ])
        first = registry.create_module('directory')
        first.properties['substitutions']['/tmp'] = 'tmp'
        assert registry.create_module('directory').properties['substitutions'] == {'~': 'home'}
        assert registry.require('directory').default_props['substitutions'] == {'~': 'home'}

    def test_register_replaces(self):
        registry = ModuleRegistry([ModuleDefinition(name='custom')])
        registry.register(ModuleDefinition(name='custom', description='v2'))
        assert registry.require('custom').description == 'v2'
        assert registry.names() == ['custom']

    def test_iteration(self):
        definitions = [ModuleDefinition(name='a'), ModuleDefinition(name=LINE_BREAK)]
        assert list(ModuleRegistry(definitions)) == definitions

    def test_default_registries_are_independent(self):
        first = default_registry()
        first.register(ModuleDefinition(name='extra'))
        assert 'extra' not in default_registry()


class TestModelHelpers:
    """Test property kinds and style merging."""

    @pytest.mark.parametrize('value, kind', [
        ('text', PropertyKind.STRING),
        (3, PropertyKind.NUMBER),
        (2.5, PropertyKind.NUMBER),
        (True, PropertyKind.BOOLEAN),
        (False, PropertyKind.BOOLEAN),
        ({'~': 'home'}, PropertyKind.STRING_MAP),
    ])
    def test_property_kind(self, value, kind):
        assert property_kind(value) is kind

    @pytest.mark.parametrize('value', [None, ['a'], {1: 'x'}, object()])
    def test_unsupported_property_kind(self, value):
        with pytest.raises(TypeError):
            property_kind(value)

    def test_module_ids_are_unique(self):
        assert ModuleInstance.create('a').id != ModuleInstance.create('a').id

    def test_merged_over(self):
        base = ParsedStyle(foreground='#000000', bold=True)
        inner = ParsedStyle(foreground='#ffffff', italic=True)
        assert inner.merged_over(base) == ParsedStyle(foreground='#ffffff', bold=True, italic=True)

    def test_empty_style(self):
        assert ParsedStyle().is_empty
        assert not ParsedStyle(bold=False).is_empty
