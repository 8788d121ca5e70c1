#!/usr/bin/env python3
"""
Compilation driver.

Runs one compilation of a generated page source: configure a backend handle,
compile the single source file, then apply the post-compilation policy
(source cleanup, error dispatch, prototype short-circuit, SMAP installation).
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Mapping, Optional

from loguru import logger

from .backends import CompilerBackend
from .collaborators import ErrorDispatcher, Localizer, SymbolInstaller
from .core_types import CleanupFailed, CompilationContext, CompilationOutcome, Location
from .line_map import LineMap, PageStructure
from .options import resolve_classpath
from .translator import translate
from .utils import FileManager


class CompilationDriver:
    """
    Compiles generated page sources with a configured backend.

    A driver holds no per-compilation state; each call to :meth:`compile`
    acquires its own backend handle, so one driver may serve concurrent
    requests for independent contexts.
    """

    def __init__(
        self,
        backend: CompilerBackend,
        dispatcher: ErrorDispatcher,
        symbol_installer: Optional[SymbolInstaller] = None,
        localizer: Optional[Localizer] = None,
        log=None,
    ) -> None:
        self.backend = backend
        self.dispatcher = dispatcher
        self.symbol_installer = symbol_installer
        self.localizer = localizer or Localizer()
        self.log = log or logger.bind(component="driver")

    def compile(
        self,
        context: CompilationContext,
        line_maps: Optional[Mapping[str, LineMap]] = None,
        page_structure: Optional[PageStructure] = None,
    ) -> CompilationOutcome:
        """
        Compile the context's source file.

        Args:
            context: Settings of this compile request
            line_maps: Line maps keyed by generated file name, used to map
                errors back to the page and to install debug symbols
            page_structure: Page tree of the generated source

        Returns:
            CompilationOutcome; an empty ``errors`` tuple means success

        Raises:
            BackendUnavailable: If no compiler can be obtained
            BackendFault: If the compiler fails abnormally
            SymbolInstallFailed: Propagated from the symbol installer
        """
        start_time = time.time()
        source_file = Path(context.source_file)

        with self.backend.acquire(context.java_encoding) as handle:
            options = self.backend.build_options(context)
            class_path = resolve_classpath(context.class_path)
            handle.set_location(
                Location.CLASS_OUTPUT,
                [FileManager.ensure_directory(context.scratch_dir)],
            )
            handle.set_location(Location.CLASS_PATH, class_path)
            diagnostics = handle.compile(options, [source_file])

        outcome = CompilationOutcome(options=options)

        if not context.keep_generated:
            outcome.cleanup_error = self._delete_source(source_file)
            outcome.source_deleted = outcome.cleanup_error is None

        outcome.errors = translate(
            diagnostics,
            line_maps,
            page_structure,
            log=self.log,
            localizer=self.localizer,
        )
        if outcome.errors:
            self.dispatcher.report(outcome.errors)

        outcome.duration_ms = (time.time() - start_time) * 1000.0
        self.log.debug(f"Compiled {source_file} in {outcome.duration_ms:.0f}ms")

        if context.prototype_mode:
            return outcome

        if not context.smap_suppressed:
            if self.symbol_installer is None:
                self.log.debug("No symbol installer configured, skipping SMAP")
            else:
                self.symbol_installer.install(line_maps)
                outcome.symbols_installed = True

        return outcome

    def _delete_source(self, source_file: Path) -> Optional[CleanupFailed]:
        try:
            source_file.unlink()
        except OSError as e:
            error = CleanupFailed(
                self.localizer.message(
                    "compiler.warning.source_delete_failed", source_file
                ),
                error_code="SOURCE_DELETE_FAILED",
                source_file=str(source_file),
                os_error=str(e),
            )
            self.log.warning(str(error))
            return error
        return None
