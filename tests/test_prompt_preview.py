"""
Tests for whole-prompt preview rendering.
"""
from prompt_preview import (
    PREDEFINED_CONTEXTS,
    GitState,
    PreviewContext,
    build_variables,
    get_context,
    render_module,
    render_prompt,
    should_show_module,
)
from starship_models import LINE_BREAK, TEXT, ModuleInstance, ParsedStyle, Segment

HOME = get_context('home')
GIT_REPO = get_context('git-repo')
NODE_PROJECT = get_context('node-project')


def _text(segments):
    return ''.join(segment.text for segment in segments)


class TestContexts:
    """Test preview contexts and module visibility."""

    def test_predefined_contexts(self):
        assert [ctx.id for ctx in PREDEFINED_CONTEXTS] == [
            'home', 'git-repo', 'go-project', 'node-project', 'container',
        ]
        assert get_context('missing') is None

    def test_git_modules_need_git(self):
        assert not should_show_module('git_branch', HOME)
        assert should_show_module('git_status', GIT_REPO)

    def test_language_modules_need_language(self):
        assert not should_show_module('nodejs', GIT_REPO)
        assert should_show_module('nodejs', NODE_PROJECT)

    def test_package_needs_version(self):
        assert not should_show_module('package', HOME)
        assert should_show_module('package', NODE_PROJECT)

    def test_other_modules_always_show(self):
        assert should_show_module('directory', HOME)
        assert should_show_module('character', HOME)


class TestBuildVariables:
    """Test variable bindings for a module."""

    def test_context_values(self, registry):
        module = registry.create_module('git_branch')
        variables = build_variables(module, registry.require('git_branch'), GIT_REPO)
        assert variables == {'$symbol': module.properties['symbol'], '$branch': 'main'}

    def test_language_version_from_context(self, registry):
        module = registry.create_module('nodejs')
        variables = build_variables(module, registry.require('nodejs'), NODE_PROJECT)
        assert variables['$version'] == '20.5.0'

    def test_mock_data_fallback(self, registry):
        module = registry.create_module('aws')
        variables = build_variables(module, registry.require('aws'), HOME)
        assert variables['$region'] == 'us-east-1'

    def test_unknown_variable_is_empty(self, registry):
        module = registry.create_module('git_status')
        variables = build_variables(module, registry.require('git_status'), HOME)
        assert variables['$all_status'] == ''

    def test_character_symbol_uses_success_symbol(self, registry):
        module = registry.create_module('character')
        module.properties['success_symbol'] = '[➜](bold green)'
        variables = build_variables(module, registry.require('character'), HOME)
        assert variables == {'$symbol': '[➜](bold green)'}


class TestRenderPrompt:
    """Test rendering modules and whole prompts."""

    def test_render_module(self, registry, default_theme):
        segments = render_module(registry.create_module('directory'), registry, default_theme, HOME)
        assert segments[0] == Segment('~', ParsedStyle(foreground=default_theme.colors.cyan, bold=True))

    def test_text_module(self, registry, default_theme):
        module = ModuleInstance.create(TEXT, {'format': '[>>](red) '})
        segments = render_module(module, registry, default_theme, HOME)
        assert segments == [
            Segment('>>', ParsedStyle(foreground=default_theme.colors.red)),
            Segment(' ', ParsedStyle()),
        ]

    def test_render_prompt(self, registry, default_theme):
        modules = [
            registry.create_module('directory'),
            registry.create_module('git_branch'),
            registry.create_module(LINE_BREAK),
            registry.create_module('character'),
        ]
        text = _text(render_prompt(modules, registry, default_theme, GIT_REPO))
        assert text.startswith('~/projects/starship')
        assert 'on ' in text and 'main' in text
        assert text.endswith('\n❯ ')

    def test_hidden_and_disabled_modules_are_skipped(self, registry, default_theme):
        directory = registry.create_module('directory')
        directory.disabled = True
        modules = [directory, registry.create_module('git_branch'), registry.create_module('character')]
        assert _text(render_prompt(modules, registry, default_theme, HOME)) == '❯ '

    def test_unknown_module_is_skipped(self, registry, default_theme):
        modules = [ModuleInstance.create('not_a_module'), registry.create_module('character')]
        assert _text(render_prompt(modules, registry, default_theme, HOME)) == '❯ '

    def test_module_without_format(self, registry, default_theme):
        modules = [registry.create_module('username')]
        assert render_prompt(modules, registry, default_theme, HOME) == []

    def test_custom_context(self, registry, default_theme):
        context = PreviewContext(id='x', name='X', path='/srv', git=GitState(branch='dev'))
        modules = [registry.create_module('git_branch')]
        assert 'dev' in _text(render_prompt(modules, registry, default_theme, context))
