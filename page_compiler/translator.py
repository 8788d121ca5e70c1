#!/usr/bin/env python3
"""
Translation of backend diagnostics into page-level compilation errors.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Mapping, Optional, Tuple

from loguru import logger

from .collaborators import Localizer
from .core_types import CompilationErrorDetail, Diagnostic, TranslationError
from .line_map import LineMap, PageStructure


def find_line_map(
    source: str, line_maps: Optional[Mapping[str, LineMap]]
) -> Optional[LineMap]:
    """Look up the line map of a generated file by path, then by base name."""
    if not line_maps:
        return None
    if source in line_maps:
        return line_maps[source]

    name = Path(source).name
    for key, line_map in line_maps.items():
        if Path(key).name == name or Path(line_map.generated_file).name == name:
            return line_map
    return None


def resolve_error(
    diagnostic: Diagnostic,
    line_maps: Optional[Mapping[str, LineMap]] = None,
    page_structure: Optional[PageStructure] = None,
    localizer: Optional[Localizer] = None,
) -> CompilationErrorDetail:
    """
    Map one error diagnostic back to template coordinates.

    The stratum of the generated file is consulted first, then the page tree.
    Without any metadata the generated coordinates are reported as they are.

    Raises:
        TranslationError: If the diagnostic is incomplete or its line is not
            covered by the available metadata
    """
    localizer = localizer or Localizer()
    source, line = diagnostic.source, diagnostic.line

    if source is None or line is None or line < 1:
        raise TranslationError(
            localizer.message("compiler.error.diagnostic_incomplete", diagnostic.message),
            error_code="DIAGNOSTIC_INCOMPLETE",
            source=source,
            line=line,
        )

    if not line_maps and page_structure is None:
        return CompilationErrorDetail(
            source_name=source,
            line=line,
            message=diagnostic.message,
            generated_file=source,
            generated_line=line,
        )

    line_map = find_line_map(source, line_maps)
    if line_map is not None:
        resolved = line_map.resolve(line)
        if resolved is not None:
            template_file, template_line = resolved
            return CompilationErrorDetail(
                source_name=template_file,
                line=template_line,
                message=diagnostic.message,
                generated_file=source,
                generated_line=line,
            )

    if page_structure is not None:
        node = page_structure.find_node(line)
        if node is not None:
            return CompilationErrorDetail(
                source_name=node.source_file,
                line=node.template_line(line),
                message=diagnostic.message,
                generated_file=source,
                generated_line=line,
            )

    raise TranslationError(
        localizer.message("compiler.error.line_unmapped", source, line),
        error_code="LINE_UNMAPPED",
        source=source,
        line=line,
    )


def translate(
    diagnostics: Iterable[Diagnostic],
    line_maps: Optional[Mapping[str, LineMap]] = None,
    page_structure: Optional[PageStructure] = None,
    log=None,
    localizer: Optional[Localizer] = None,
) -> Tuple[CompilationErrorDetail, ...]:
    """
    Convert the error diagnostics of a compilation into error details.

    Non-error diagnostics are ignored. A diagnostic that cannot be resolved is
    logged and skipped; the rest of the batch is still translated.

    Args:
        diagnostics: Diagnostics in the order the backend reported them
        line_maps: Line maps keyed by generated file name
        page_structure: Page tree of the generated source
        log: Logger to report skipped diagnostics to
        localizer: Message source for error text

    Returns:
        Tuple of error details, in diagnostic order
    """
    log = log or logger.bind(component="translator")
    localizer = localizer or Localizer()
    errors = []

    for diagnostic in diagnostics:
        if not diagnostic.is_error:
            continue
        try:
            errors.append(
                resolve_error(diagnostic, line_maps, page_structure, localizer)
            )
        except TranslationError as e:
            log.warning(f"Skipping compiler error: {e}")

    return tuple(errors)
