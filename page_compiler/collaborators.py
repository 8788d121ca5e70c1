#!/usr/bin/env python3
"""
Interfaces of the driver's collaborators and their default implementations.

The driver only relies on the protocols; the classes here are the defaults
used by the high-level API and the command-line front end.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Mapping, Optional, Protocol, Sequence, Tuple

from loguru import logger

from .core_types import (
    CompilationErrorDetail,
    CompilationFailedError,
    PathLike,
    SymbolInstallFailed,
)
from .line_map import LineMap
from .utils import FileManager, load_json

DEFAULT_MESSAGES: Dict[str, str] = {
    "compiler.error.backend_not_found": (
        "No Java compiler was found ({0}). Install a JDK or set JAVA_HOME."
    ),
    "compiler.error.unknown_backend": (
        "Unknown compiler backend [{0}]. Available backends: {1}"
    ),
    "compiler.error.backend_fault": (
        "The Java compiler failed with exit code [{0}]: {1}"
    ),
    "compiler.error.unparsed_failure": (
        "The Java compiler exited with code [{0}] without reporting an error: {1}"
    ),
    "compiler.error.line_unmapped": (
        "Unable to map line [{1}] of generated file [{0}] to the page source"
    ),
    "compiler.error.diagnostic_incomplete": (
        "Compiler error reported without a source file or line: {0}"
    ),
    "compiler.error.compilation_failed": (
        "Unable to compile class for page: {0} error(s)"
    ),
    "compiler.error.smap_install_failed": (
        "Unable to install SMAP for class [{0}]: {1}"
    ),
    "compiler.warning.source_delete_failed": (
        "Failed to delete generated Java file [{0}]"
    ),
}


class Localizer:
    """Resolves message keys to human-readable text."""

    def __init__(self, messages: Optional[Mapping[str, str]] = None) -> None:
        self.messages: Dict[str, str] = dict(DEFAULT_MESSAGES)
        if messages:
            self.messages.update(messages)

    @classmethod
    def from_file(cls, file_path: PathLike) -> Localizer:
        """Load message overrides from a flat JSON object."""
        return cls(load_json(file_path))

    def message(self, key: str, *args: object) -> str:
        template = self.messages.get(key)
        if template is None:
            return key
        try:
            return template.format(*args)
        except (IndexError, KeyError):
            return template


class ErrorDispatcher(Protocol):
    """Receives the translated errors of a compilation as one batch."""

    def report(self, errors: Sequence[CompilationErrorDetail]) -> None:
        ...


class SymbolInstaller(Protocol):
    """Installs debug symbols mapping classes back to template sources."""

    def install(self, line_maps: Optional[Mapping[str, LineMap]]) -> None:
        ...


class CollectingErrorDispatcher:
    """Keeps every reported batch and logs each error."""

    def __init__(self) -> None:
        self.batches: List[Tuple[CompilationErrorDetail, ...]] = []

    def report(self, errors: Sequence[CompilationErrorDetail]) -> None:
        batch = tuple(errors)
        self.batches.append(batch)
        for error in batch:
            logger.error(f"Compilation error: {error}")

    @property
    def errors(self) -> List[CompilationErrorDetail]:
        """All errors reported so far, in order."""
        return [error for batch in self.batches for error in batch]


class RaisingErrorDispatcher:
    """Turns a reported batch into a :class:`CompilationFailedError`."""

    def __init__(self, localizer: Optional[Localizer] = None) -> None:
        self.localizer = localizer or Localizer()

    def report(self, errors: Sequence[CompilationErrorDetail]) -> None:
        details = "\n".join(str(error) for error in errors)
        message = self.localizer.message(
            "compiler.error.compilation_failed", len(errors)
        )
        raise CompilationFailedError(
            f"{message}\n{details}",
            tuple(errors),
            error_code="COMPILATION_FAILED",
        )


class SmapFileInstaller:
    """Writes each line map as a ``.class.smap`` file next to its class."""

    def __init__(
        self, output_dir: PathLike, localizer: Optional[Localizer] = None
    ) -> None:
        self.output_dir = Path(output_dir)
        self.localizer = localizer or Localizer()

    def install(self, line_maps: Optional[Mapping[str, LineMap]]) -> None:
        if not line_maps:
            logger.debug("No line maps to install")
            return

        for line_map in line_maps.values():
            target = self.output_dir / line_map.class_file.with_suffix(".class.smap")
            try:
                FileManager.ensure_directory(target.parent)
                target.write_text(line_map.to_smap(), encoding="utf-8")
            except OSError as e:
                raise SymbolInstallFailed(
                    self.localizer.message(
                        "compiler.error.smap_install_failed", line_map.class_name, e
                    ),
                    error_code="SMAP_WRITE_ERROR",
                    target=str(target),
                ) from e
            logger.debug(f"Installed SMAP for {line_map.class_name} at {target}")
