import os
from pathlib import Path

import pytest

# Use relative imports as the directory is a package
from .core_types import CompilationContext, DEFAULT_VM_VERSION
from .options import (
    EcjOptionsBuilder,
    JavacOptionsBuilder,
    OptionsBuilder,
    resolve_classpath,
)


# --- Fixtures ---


@pytest.fixture
def make_context(tmp_path):
    """Factory for contexts pointing at a temporary scratch directory."""

    def _make(**overrides):
        values = {
            "scratch_dir": tmp_path / "classes",
            "source_file": tmp_path / "index_jsp.java",
        }
        values.update(overrides)
        return CompilationContext(**values)

    return _make


# --- Tests for resolve_classpath ---


def test_resolve_classpath_drops_empty_segments():
    """Empty segments are discarded and order is kept."""
    assert resolve_classpath("a:b::c", separator=":") == [Path("a"), Path("b"), Path("c")]


def test_resolve_classpath_leading_and_trailing_separators():
    assert resolve_classpath(";lib/x.jar;;classes;", separator=";") == [
        Path("lib/x.jar"),
        Path("classes"),
    ]


def test_resolve_classpath_uses_platform_separator():
    """Without an explicit separator the platform one is used."""
    path_string = os.pathsep.join(["first.jar", "", "second.jar"])
    assert resolve_classpath(path_string) == [Path("first.jar"), Path("second.jar")]


@pytest.mark.parametrize("path_string", ["", None, ":::"])
def test_resolve_classpath_empty(path_string):
    assert resolve_classpath(path_string, separator=":") == []


def test_resolve_classpath_preserves_precedence_order():
    entries = resolve_classpath("z.jar:a.jar:m.jar", separator=":")
    assert [entry.name for entry in entries] == ["z.jar", "a.jar", "m.jar"]


# --- Tests for OptionsBuilder ---


def test_build_options_debug_enabled(make_context):
    """Debug info on emits -g before the language levels."""
    options = OptionsBuilder().build(make_context(class_debug_info=True))
    assert options[0] == "-g"
    assert "-g:none" not in options
    assert options.index("-g") < options.index("-source")


def test_build_options_debug_disabled(make_context):
    options = OptionsBuilder().build(make_context(class_debug_info=False))
    assert options[0] == "-g:none"
    assert "-g" not in options
    assert options.index("-g:none") < options.index("-source")


def test_build_options_defaults(make_context):
    """Unset source and target both fall back to the baseline level."""
    options = OptionsBuilder().build(make_context())
    assert options == ("-g", "-source", DEFAULT_VM_VERSION, "-target", DEFAULT_VM_VERSION)
    assert DEFAULT_VM_VERSION == "1.8"


def test_build_options_only_source_set(make_context):
    """Setting the source level leaves the target default alone."""
    options = OptionsBuilder().build(make_context(compiler_source_vm="17"))
    assert options[options.index("-source") + 1] == "17"
    assert options[options.index("-target") + 1] == DEFAULT_VM_VERSION


def test_build_options_only_target_set(make_context):
    options = OptionsBuilder().build(make_context(compiler_target_vm="11"))
    assert options[options.index("-source") + 1] == DEFAULT_VM_VERSION
    assert options[options.index("-target") + 1] == "11"


def test_build_options_is_immutable_tuple(make_context):
    assert isinstance(OptionsBuilder().build(make_context()), tuple)


def test_build_options_appends_context_extras_last(make_context):
    context = make_context(extra_options=["-parameters"])
    options = JavacOptionsBuilder().build(context)
    assert options[-1] == "-parameters"
    assert options.index("-proc:none") < options.index("-parameters")


def test_javac_builder_extends_base(make_context):
    """Backend builders keep the shared tokens and add their own."""
    context = make_context(compiler_source_vm="11", compiler_target_vm="11")
    options = JavacOptionsBuilder().build(context)
    assert options[:5] == ("-g", "-source", "11", "-target", "11")
    assert options[5:] == ("-proc:none", "-Xlint:none")


def test_ecj_builder_extends_base(make_context):
    options = EcjOptionsBuilder().build(make_context(class_debug_info=False))
    assert options[:5] == ("-g:none", "-source", "1.8", "-target", "1.8")
    assert options[5:] == ("-proc:none", "-nowarn")


def test_custom_builder_by_subclassing(make_context):
    """A subclass can contribute tokens without replacing the base ones."""

    class VerboseBuilder(OptionsBuilder):
        default_version = "11"

        def extra_options(self, context):
            return ["-Xdiags:verbose"]

    options = VerboseBuilder().build(make_context())
    assert options == ("-g", "-source", "11", "-target", "11", "-Xdiags:verbose")
