#!/usr/bin/env python3
"""
Compiler backends.

A backend knows how to locate a Java compiler toolchain, which command-line
tokens it needs and how to read its diagnostics. Acquiring a backend yields a
:class:`CompilerHandle`, a scoped resource configured with the output
directory and classpath for exactly one compilation.
"""

from __future__ import annotations

import os
import platform
import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Type

from loguru import logger

from .collaborators import Localizer
from .core_types import (
    BackendFault,
    BackendUnavailable,
    CompilationContext,
    Diagnostic,
    InvalidConfigurationError,
    Location,
    PathLike,
)
from .options import EcjOptionsBuilder, JavacOptionsBuilder, OptionsBuilder
from .parsers import CompilerOutputParser, EcjOutputParser, JavacOutputParser
from .utils import FileManager, ProcessManager


def _quote_argument(argument: str) -> str:
    escaped = argument.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


class CompilerHandle:
    """
    One configured compiler instance.

    Owns a private working directory that is removed on :meth:`close`; use it
    as a context manager so it is released on every exit path.
    """

    def __init__(
        self,
        backend_name: str,
        command: Sequence[str],
        parser: CompilerOutputParser,
        encoding: str,
        *,
        success_codes: Tuple[int, ...] = (0, 1),
        use_argfile: bool = True,
        timeout: Optional[float] = None,
        process_manager: Optional[ProcessManager] = None,
        localizer: Optional[Localizer] = None,
    ) -> None:
        self.backend_name = backend_name
        self.command = list(command)
        self.parser = parser
        self.encoding = encoding
        self.success_codes = success_codes
        self.use_argfile = use_argfile
        self.timeout = timeout
        self.process_manager = process_manager or ProcessManager()
        self.localizer = localizer or Localizer()
        self.work_dir: Path = FileManager.create_temporary_directory(
            prefix=f"page_compiler_{backend_name}_"
        )
        self.closed = False
        self._locations: Dict[Location, List[Path]] = {}

    def __enter__(self) -> CompilerHandle:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        """Release the handle's resources. Safe to call more than once."""
        if self.closed:
            return
        self.closed = True
        FileManager.remove_directory(self.work_dir)

    def _check_open(self) -> None:
        if self.closed:
            raise BackendFault(
                f"{self.backend_name} compiler handle is closed",
                error_code="HANDLE_CLOSED",
            )

    def set_location(self, location: Location, paths: Iterable[PathLike]) -> None:
        self._check_open()
        self._locations[location] = [Path(p) for p in paths]

    def get_location(self, location: Location) -> List[Path]:
        return list(self._locations.get(location, []))

    def build_arguments(
        self, options: Sequence[str], sources: Sequence[PathLike]
    ) -> List[str]:
        """Assemble options, configured locations and sources into arguments."""
        arguments = list(options)
        arguments.extend(["-encoding", self.encoding])

        output_dirs = self.get_location(Location.CLASS_OUTPUT)
        if output_dirs:
            arguments.extend(["-d", str(output_dirs[0])])

        class_path = self.get_location(Location.CLASS_PATH)
        if class_path:
            arguments.extend(
                ["-classpath", os.pathsep.join(str(entry) for entry in class_path)]
            )

        arguments.extend(str(source) for source in sources)
        return arguments

    def compile(
        self, options: Sequence[str], sources: Sequence[PathLike]
    ) -> List[Diagnostic]:
        """
        Run the compiler synchronously and collect its diagnostics.

        Raises:
            BackendFault: If the toolchain could not run or failed abnormally
        """
        self._check_open()
        arguments = self.build_arguments(options, sources)

        if self.use_argfile:
            argfile = self.work_dir / "arguments.txt"
            argfile.write_text(
                "\n".join(_quote_argument(a) for a in arguments) + "\n",
                encoding="utf-8",
            )
            command = self.command + [f"@{argfile}"]
        else:
            command = self.command + arguments

        result = self.process_manager.run_command(command, timeout=self.timeout)

        if result.return_code not in self.success_codes:
            raise BackendFault(
                self.localizer.message(
                    "compiler.error.backend_fault", result.return_code, result.output
                ),
                command=command,
                return_code=result.return_code,
                stderr=result.stderr,
                error_code="BACKEND_FAULT",
            )

        diagnostics = self.parser.parse(result.output)

        # Errors without a source file come from the command line, not the page
        fileless = [d for d in diagnostics if d.is_error and d.source is None]
        if fileless:
            raise BackendFault(
                self.localizer.message(
                    "compiler.error.backend_fault",
                    result.return_code,
                    "; ".join(d.message for d in fileless),
                ),
                command=command,
                return_code=result.return_code,
                stderr=result.stderr,
                error_code="INVALID_COMMAND_LINE",
            )

        if result.return_code != 0 and not any(d.is_error for d in diagnostics):
            raise BackendFault(
                self.localizer.message(
                    "compiler.error.unparsed_failure", result.return_code, result.output
                ),
                command=command,
                return_code=result.return_code,
                stderr=result.stderr,
                error_code="UNPARSED_FAILURE",
            )

        return diagnostics


class CompilerBackend(ABC):
    """
    A Java compiler implementation the driver can be configured with.

    Subclasses locate their toolchain in :meth:`find_command` and contribute
    their own tokens through :attr:`options_builder_class`.
    """

    name: str = "abstract"
    options_builder_class: Type[OptionsBuilder] = OptionsBuilder
    parser_class: Type[CompilerOutputParser] = JavacOutputParser
    success_codes: Tuple[int, ...] = (0, 1)
    use_argfile: bool = True
    # Tokens placed between the executable and the compiler arguments
    launcher_options: Tuple[str, ...] = ()

    def __init__(
        self,
        executable: Optional[PathLike] = None,
        timeout: Optional[float] = None,
        process_manager: Optional[ProcessManager] = None,
        localizer: Optional[Localizer] = None,
    ) -> None:
        self.executable = str(executable) if executable else None
        self.timeout = timeout
        self.process_manager = process_manager or ProcessManager()
        self.localizer = localizer or Localizer()
        self.options_builder = self.options_builder_class()

    @abstractmethod
    def find_command(self) -> Optional[List[str]]:
        """Return the command invoking the compiler, or None if unavailable."""

    def build_options(self, context: CompilationContext) -> Tuple[str, ...]:
        return self.options_builder.build(context)

    def acquire(self, encoding: str = "UTF-8") -> CompilerHandle:
        """
        Obtain a fresh compiler handle.

        Raises:
            BackendUnavailable: If the toolchain cannot be found
        """
        command = self.find_command()
        if not command:
            raise BackendUnavailable(
                self.localizer.message("compiler.error.backend_not_found", self.name),
                error_code="BACKEND_NOT_FOUND",
                backend=self.name,
            )

        command = list(command) + list(self.launcher_options)
        logger.debug(f"Acquired {self.name} compiler: {' '.join(command)}")
        return CompilerHandle(
            self.name,
            command,
            self.parser_class(),
            encoding,
            success_codes=self.success_codes,
            use_argfile=self.use_argfile,
            timeout=self.timeout,
            process_manager=self.process_manager,
            localizer=self.localizer,
        )

    @staticmethod
    def _resolve_executable(candidate: str) -> Optional[str]:
        path = Path(candidate)
        if path.is_file() and os.access(path, os.X_OK):
            return str(path)
        return shutil.which(candidate)


class JavacBackend(CompilerBackend):
    """The system Java compiler shipped with the JDK."""

    name = "javac"
    options_builder_class = JavacOptionsBuilder
    parser_class = JavacOutputParser
    # Diagnostics are only parseable in the English locale
    launcher_options = ("-J-Duser.language=en", "-J-Duser.country=US")

    def find_command(self) -> Optional[List[str]]:
        if self.executable:
            resolved = self._resolve_executable(self.executable)
            return [resolved] if resolved else None

        java_home = os.environ.get("JAVA_HOME")
        if java_home:
            suffix = ".exe" if platform.system() == "Windows" else ""
            candidate = Path(java_home) / "bin" / f"javac{suffix}"
            if candidate.is_file():
                return [str(candidate)]

        resolved = shutil.which("javac")
        return [resolved] if resolved else None


class EcjBackend(CompilerBackend):
    """The Eclipse batch compiler, either as an ``ecj`` script or a jar."""

    name = "ecj"
    options_builder_class = EcjOptionsBuilder
    parser_class = EcjOutputParser
    use_argfile = False

    def __init__(self, executable: Optional[PathLike] = None, jar: Optional[PathLike] = None, **kwargs) -> None:
        super().__init__(executable, **kwargs)
        self.jar = Path(jar) if jar else None

    def find_command(self) -> Optional[List[str]]:
        if self.jar is not None:
            java = shutil.which("java")
            if java and self.jar.is_file():
                return [java, "-jar", str(self.jar)]
            return None

        resolved = self._resolve_executable(self.executable or "ecj")
        return [resolved] if resolved else None


_BACKENDS: Dict[str, Type[CompilerBackend]] = {
    JavacBackend.name: JavacBackend,
    EcjBackend.name: EcjBackend,
}


def register_backend(name: str, backend_class: Type[CompilerBackend]) -> None:
    """Make a backend selectable by name."""
    _BACKENDS[name.lower()] = backend_class


def available_backends() -> List[str]:
    return sorted(_BACKENDS)


def create_backend(name: str = "javac", **kwargs) -> CompilerBackend:
    """
    Create a backend by its configured name.

    Raises:
        InvalidConfigurationError: If no backend is registered under ``name``
    """
    backend_class = _BACKENDS.get(name.lower())
    if backend_class is None:
        localizer = kwargs.get("localizer") or Localizer()
        raise InvalidConfigurationError(
            localizer.message(
                "compiler.error.unknown_backend", name, ", ".join(available_backends())
            ),
            error_code="UNKNOWN_BACKEND",
            backend=name,
        )
    return backend_class(**kwargs)
