import platform
import shutil
import stat
from unittest.mock import MagicMock

import pytest

# Use relative imports as the directory is a package
from .backends import JavacBackend
from .collaborators import CollectingErrorDispatcher, SmapFileInstaller
from .core_types import BackendFault, CompilationContext
from .driver import CompilationDriver
from .line_map import LineMap, LineMapEntry

posix_only = pytest.mark.skipif(
    platform.system() == "Windows", reason="fake compiler is a shell script"
)
requires_javac = pytest.mark.skipif(
    shutil.which("javac") is None, reason="javac not available"
)

# Reports an error on the first line of the source named last in the argfile,
# in German unless the JVM is started with an English locale
FAKE_JAVAC = """#!/bin/sh
language=de
for arg; do
    case "$arg" in
        -J-Duser.language=*) language="${arg#-J-Duser.language=}" ;;
        @*) argfile="${arg#@}" ;;
    esac
done
src=$(tail -n 1 "$argfile" | tr -d '"')
if grep -q 'class' "$src"; then
    if [ "$language" = en ]; then
        echo "$src:1: error: ';' expected" >&2
        echo "public class Broken { int x = 1 }" >&2
        echo "                                ^" >&2
        echo "1 error" >&2
    else
        echo "$src:1: Fehler: ';' erwartet" >&2
        echo "public class Broken { int x = 1 }" >&2
        echo "                                ^" >&2
        echo "1 Fehler" >&2
    fi
    exit 1
fi
exit 0
"""


# --- Fixtures ---


@pytest.fixture
def fake_javac(tmp_path):
    path = tmp_path / "jdk" / "bin" / "javac"
    path.parent.mkdir(parents=True)
    path.write_text(FAKE_JAVAC)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def broken_source(tmp_path):
    path = tmp_path / "src" / "Broken.java"
    path.parent.mkdir(parents=True)
    path.write_text("public class Broken { int x = 1 }\n", encoding="utf-8")
    return path


# --- Tests ---


@posix_only
def test_invalid_line_reported_once(fake_javac, broken_source, tmp_path):
    """A one-line invalid source yields one error on that line, dispatched once."""
    dispatcher = MagicMock(wraps=CollectingErrorDispatcher())
    driver = CompilationDriver(JavacBackend(executable=fake_javac), dispatcher)
    context = CompilationContext(scratch_dir=tmp_path / "classes", source_file=broken_source)

    outcome = driver.compile(context)

    assert len(outcome.errors) == 1
    assert outcome.errors[0].line == 1
    assert outcome.errors[0].source_name == str(broken_source)
    assert outcome.errors[0].message == "';' expected"
    dispatcher.report.assert_called_once_with(outcome.errors)


@posix_only
def test_errors_mapped_to_page_and_source_removed(fake_javac, broken_source, tmp_path):
    line_maps = {
        str(broken_source): LineMap(
            generated_file=str(broken_source),
            class_name="org.apache.jsp.Broken",
            files={0: "/broken.jsp"},
            entries=[LineMapEntry(input_start_line=12, output_start_line=1)],
        )
    }
    dispatcher = CollectingErrorDispatcher()
    installer = SmapFileInstaller(tmp_path / "classes")
    driver = CompilationDriver(JavacBackend(executable=fake_javac), dispatcher, installer)
    context = CompilationContext(
        scratch_dir=tmp_path / "classes", source_file=broken_source, keep_generated=False
    )

    outcome = driver.compile(context, line_maps)

    assert [e.to_dict() for e in dispatcher.errors] == [
        {"source_name": "/broken.jsp", "line": 12, "message": "';' expected"}
    ]
    assert outcome.source_deleted
    assert not broken_source.exists()
    assert (tmp_path / "classes" / "org" / "apache" / "jsp" / "Broken.class.smap").is_file()


class DefaultLocaleJavacBackend(JavacBackend):
    """javac started without forcing the English locale."""

    launcher_options = ()


@posix_only
def test_localized_failure_is_backend_fault(fake_javac, broken_source, tmp_path):
    """Errors printed in another language never pass as a clean compile."""
    dispatcher = MagicMock(wraps=CollectingErrorDispatcher())
    driver = CompilationDriver(DefaultLocaleJavacBackend(executable=fake_javac), dispatcher)
    context = CompilationContext(scratch_dir=tmp_path / "classes", source_file=broken_source)

    with pytest.raises(BackendFault) as excinfo:
        driver.compile(context)

    assert excinfo.value.error_code == "UNPARSED_FAILURE"
    assert excinfo.value.return_code == 1
    assert "Fehler" in excinfo.value.stderr
    dispatcher.report.assert_not_called()


@requires_javac
def test_real_javac_reports_syntax_error(broken_source, tmp_path):
    dispatcher = CollectingErrorDispatcher()
    driver = CompilationDriver(JavacBackend(), dispatcher)
    context = CompilationContext(
        scratch_dir=tmp_path / "classes",
        source_file=broken_source,
        compiler_source_vm="11",
        compiler_target_vm="11",
    )

    outcome = driver.compile(context)

    assert outcome.has_errors
    assert {error.line for error in outcome.errors} == {1}
    assert len(dispatcher.batches) == 1


@requires_javac
def test_real_javac_compiles_valid_source(tmp_path):
    source = tmp_path / "src" / "Hello.java"
    source.parent.mkdir(parents=True)
    source.write_text("public class Hello { int x = 1; }\n", encoding="utf-8")
    context = CompilationContext(
        scratch_dir=tmp_path / "classes",
        source_file=source,
        compiler_source_vm="11",
        compiler_target_vm="11",
        keep_generated=False,
    )

    outcome = CompilationDriver(JavacBackend(), CollectingErrorDispatcher()).compile(context)

    assert outcome.success
    assert (tmp_path / "classes" / "Hello.class").is_file()
    assert not source.exists()
