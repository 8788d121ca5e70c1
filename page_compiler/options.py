#!/usr/bin/env python3
"""
Classpath resolution and compiler option building.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional, Tuple

from .core_types import DEFAULT_VM_VERSION, CompilationContext


def resolve_classpath(path_string: Optional[str], separator: str = os.pathsep) -> List[Path]:
    """
    Split a classpath string into its entries.

    Empty segments are dropped; order is preserved since it decides lookup
    precedence.
    """
    if not path_string:
        return []
    return [Path(token) for token in path_string.split(separator) if token]


class OptionsBuilder:
    """
    Builds the command-line tokens shared by all backends.

    Backends add their own tokens by overriding :meth:`extra_options`.
    """

    default_version: str = DEFAULT_VM_VERSION

    def build(self, context: CompilationContext) -> Tuple[str, ...]:
        options = self.debug_options(context)

        options.append("-source")
        if context.compiler_source_vm is not None:
            options.append(context.compiler_source_vm)
        else:
            options.append(self.default_version)

        options.append("-target")
        if context.compiler_target_vm is not None:
            options.append(context.compiler_target_vm)
        else:
            options.append(self.default_version)

        options.extend(self.extra_options(context))
        options.extend(context.extra_options)
        return tuple(options)

    def debug_options(self, context: CompilationContext) -> List[str]:
        return ["-g"] if context.class_debug_info else ["-g:none"]

    def extra_options(self, context: CompilationContext) -> List[str]:
        """Backend-specific tokens appended after the language levels."""
        return []


class JavacOptionsBuilder(OptionsBuilder):
    """Options for the system javac."""

    def extra_options(self, context: CompilationContext) -> List[str]:
        # Generated pages never carry annotation processors
        return ["-proc:none", "-Xlint:none"]


class EcjOptionsBuilder(OptionsBuilder):
    """Options for the Eclipse batch compiler."""

    def extra_options(self, context: CompilationContext) -> List[str]:
        return ["-proc:none", "-nowarn"]
