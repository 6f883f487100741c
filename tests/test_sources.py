"""
Tests for the value resolvers and the resolution pipeline.
"""

import re
from pathlib import Path

import pytest
from envdoctor.core.config import Config, CIConfig
from envdoctor.core.discovery import make_app
from envdoctor.core.types import (
    CurrentValues,
    Directive,
    OPTIONAL,
    ResolvedValue,
    ResolverContext,
    VariableDefinition,
)
from envdoctor.plugins import PluginHooks, PluginRegistry, ValueSourceProvider, create_plugin
from envdoctor.sources import (
    resolve_computed,
    resolve_copy,
    resolve_default,
    resolve_local_only,
    resolve_placeholder,
    resolve_value,
    run_resolution_pass,
)


NO_CI = Config(ci=CIConfig(detection={}))


def make_context(values=None, interactive=False, config=NO_CI):
    root = Path("/workspace")
    return ResolverContext(
        app=make_app(root / "apps" / "web", config),
        current_values=CurrentValues(values or {}),
        interactive=interactive,
        config=config,
        root_dir=root,
    )


def var(name, example_value="", directive=None, **kwargs):
    return VariableDefinition(
        name=name,
        example_value=example_value,
        directive=directive or Directive(),
        **kwargs,
    )


class TestPlaceholder:
    def test_required_placeholder_warns(self):
        result = resolve_placeholder(var("API_KEY", "abc123"), make_context())

        assert result == ResolvedValue(
            value="abc123",
            source="placeholder",
            warning="Placeholder used for required variable: API_KEY",
        )

    def test_optional_placeholder_is_silent(self):
        result = resolve_placeholder(var("API_KEY", "abc123", requirement=OPTIONAL), make_context())
        assert result.value == "abc123"
        assert result.warning is None

    def test_empty_example_gets_marker(self):
        result = resolve_placeholder(var("API_KEY"), make_context())
        assert result.value == "REPLACE_ME_API_KEY"


class TestCopy:
    def test_copies_known_value(self):
        definition = var("B", directive=Directive(type="copy", copy_from="A"))
        result = resolve_copy(definition, make_context({"A": "v1"}))

        assert result.value == "v1"
        assert result.source == "copied"
        assert result.warning is None

    def test_missing_source_falls_back(self):
        definition = var("B", "fallback", directive=Directive(type="copy", copy_from="A"))
        result = resolve_copy(definition, make_context())

        assert result.value == "fallback"
        assert result.source == "placeholder"
        assert result.warning == "Source variable A not found for copying to B"

    def test_no_source_named(self):
        definition = var("B", "x", directive=Directive(type="copy"))
        result = resolve_copy(definition, make_context())
        assert result.warning == "No source variable specified for copy directive on B"


class TestDefault:
    def test_uses_directive_default(self):
        definition = var("PORT", "1234", directive=Directive(type="default", default_value="3000"))
        result = resolve_default(definition, make_context())
        assert result.value == "3000"
        assert result.source == "default"

    def test_falls_back_to_example(self):
        definition = var("PORT", "1234", directive=Directive(type="default"))
        assert resolve_default(definition, make_context()).value == "1234"


class TestComputed:
    def test_unsupported_type_warns(self):
        definition = var("PORT", "3000", directive=Directive(type="computed", compute_type="port"))
        result = resolve_computed(definition, make_context())

        assert result.value == "3000"
        assert result.source == "placeholder"
        assert result.warning == "Computed type 'port' not supported, using example value for PORT"

    def test_missing_type_warns(self):
        definition = var("PORT", "3000", directive=Directive(type="computed"))
        result = resolve_computed(definition, make_context())
        assert result.warning == "No compute type specified for PORT, using example value"


class TestLocalOnly:
    def test_skipped_when_not_interactive(self):
        """Skipped even when a default is available."""
        definition = var(
            "DEBUG_TOKEN",
            "tok",
            directive=Directive(type="local-only", default_value="dev"),
            requirement=OPTIONAL,
        )
        result = resolve_local_only(definition, make_context(interactive=False))

        assert result.skipped is True
        assert result.value == ""

    def test_skipped_in_ci(self, monkeypatch):
        monkeypatch.setenv("CI", "true")
        definition = var("DEBUG_TOKEN", directive=Directive(type="local-only", default_value="dev"))
        result = resolve_local_only(definition, make_context(interactive=True, config=Config()))
        assert result.skipped is True

    def test_interactive_uses_default(self):
        definition = var("DEBUG_TOKEN", "tok", directive=Directive(type="local-only", default_value="dev"))
        result = resolve_local_only(definition, make_context(interactive=True))
        assert result.value == "dev"
        assert result.skipped is False


class TestResolveValue:
    """Test resolver selection."""

    def test_existing_value_short_circuits(self):
        result = resolve_value(var("A", "x"), make_context({"A": "real"}))
        assert result == ResolvedValue(value="real", source="existing")

    def test_builtin_resolver(self):
        definition = var("PORT", directive=Directive(type="default", default_value="3000"))
        assert resolve_value(definition, make_context()).value == "3000"

    def test_unknown_type_uses_placeholder(self):
        definition = var("SECRET", "s", directive=Directive(type="vault"))
        result = resolve_value(definition, make_context())

        assert result.value == "s"
        assert result.source == "placeholder"
        assert result.warning == "No resolver for directive 'vault' on SECRET, using placeholder"

    def test_plugin_source_beats_builtin(self):
        registry = PluginRegistry()
        registry.register(create_plugin("fixed", sources=[
            ValueSourceProvider(
                directive_type="default",
                resolve=lambda d, c: ResolvedValue(value="from-plugin", source="fixed"),
            )
        ]))
        definition = var("PORT", directive=Directive(type="default", default_value="3000"))
        result = resolve_value(definition, make_context(), registry)

        assert result.value == "from-plugin"
        assert result.source == "fixed"

    def test_first_registered_plugin_wins(self):
        registry = PluginRegistry()
        registry.register(create_plugin("first", sources=[
            ValueSourceProvider(
                directive_type="other",
                pattern=re.compile(r"\[vault:"),
                resolve=lambda d, c: ResolvedValue(value="first", source="first"),
            )
        ]))
        registry.register(create_plugin("second", sources=[
            ValueSourceProvider(
                directive_type="vault",
                resolve=lambda d, c: ResolvedValue(value="second", source="second"),
            )
        ]))
        definition = var("SECRET", directive=Directive(type="vault"), raw_comment="[vault:kv/app]")

        assert resolve_value(definition, make_context(), registry).value == "first"

    def test_unavailable_plugin_source(self):
        registry = PluginRegistry()
        registry.register(create_plugin("vault", sources=[
            ValueSourceProvider(
                directive_type="vault",
                resolve=lambda d, c: ResolvedValue(value="secret", source="vault"),
                is_available=lambda c: False,
                unavailable_message="Vault CLI not installed",
            )
        ]))
        definition = var("SECRET", "ex", directive=Directive(type="vault"))
        result = resolve_value(definition, make_context(), registry)

        assert result.value == "ex"
        assert result.source == "placeholder"
        assert result.warning == "Vault CLI not installed"


class TestResolutionPass:
    """Test ordered passes over a schema."""

    def test_copy_sees_earlier_value(self):
        schema = [
            var("API_URL", directive=Directive(type="default", default_value="http://localhost:4000")),
            var("NEXT_PUBLIC_API_URL", directive=Directive(type="copy", copy_from="API_URL")),
        ]
        context = make_context()
        result = run_resolution_pass(schema, context)

        assert result.updates == {
            "API_URL": "http://localhost:4000",
            "NEXT_PUBLIC_API_URL": "http://localhost:4000",
        }
        assert context.current_values["NEXT_PUBLIC_API_URL"] == "http://localhost:4000"

    def test_copy_does_not_see_later_value(self):
        schema = [
            var("NEXT_PUBLIC_API_URL", "ex", directive=Directive(type="copy", copy_from="API_URL")),
            var("API_URL", directive=Directive(type="default", default_value="http://localhost:4000")),
        ]
        result = run_resolution_pass(schema, make_context())

        assert result.updates["NEXT_PUBLIC_API_URL"] == "ex"
        assert result.warnings == ["Source variable API_URL not found for copying to NEXT_PUBLIC_API_URL"]

    def test_skips_names_with_values(self):
        schema = [var("A", "x"), var("B", "y")]
        result = run_resolution_pass(schema, make_context({"A": "set"}))
        assert list(result.resolved) == ["B"]

    def test_skipped_values_are_not_written(self):
        schema = [var("DEBUG", directive=Directive(type="local-only"), requirement=OPTIONAL)]
        context = make_context()
        result = run_resolution_pass(schema, context)

        assert result.updates == {}
        assert result.skipped == ["DEBUG"]
        assert "DEBUG" not in context.current_values

    def test_hooks_run_around_each_variable(self):
        calls = []
        registry = PluginRegistry()
        registry.register(create_plugin("spy", hooks=_spy_hooks(calls)))
        run_resolution_pass([var("A", "1"), var("B", "2")], make_context(), registry)

        assert calls == [("before", "A"), ("after", "A", "1"), ("before", "B"), ("after", "B", "2")]


def _spy_hooks(calls):
    return PluginHooks(
        before_resolve=lambda d, c: calls.append(("before", d.name)),
        after_resolve=lambda d, r, c: calls.append(("after", d.name, r.value)),
    )


class TestCurrentValues:
    def test_record_new_name(self):
        values = CurrentValues({"A": "1"})
        values.record("B", "2")
        assert dict(values) == {"A": "1", "B": "2"}

    def test_record_fills_empty(self):
        values = CurrentValues({"A": ""})
        values.record("A", "1")
        assert values["A"] == "1"

    def test_cannot_overwrite(self):
        values = CurrentValues({"A": "1"})
        with pytest.raises(ValueError):
            values.record("A", "2")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
