#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Page Compiler Module

Compiles the Java source generated for a template page into class files using
an external compiler toolchain, and maps the compiler's errors back to the
original page lines.

Features:
- Interchangeable backends (system javac, Eclipse batch compiler)
- Page/line-accurate error reporting through line maps and page trees
- Optional cleanup of the generated source
- SMAP (JSR-45) installation for debugging the original page
- Prototype mode for check-only compilation
"""

import sys

from loguru import logger

from .api import (
    compile_page,
    compile_page_async,
    load_context,
    load_context_async,
    load_line_maps_file,
)
from .backends import (
    CompilerBackend,
    CompilerHandle,
    EcjBackend,
    JavacBackend,
    available_backends,
    create_backend,
    register_backend,
)
from .collaborators import (
    CollectingErrorDispatcher,
    ErrorDispatcher,
    Localizer,
    RaisingErrorDispatcher,
    SmapFileInstaller,
    SymbolInstaller,
)
from .core_types import (
    BackendFault,
    BackendUnavailable,
    CleanupFailed,
    CompilationContext,
    CompilationErrorDetail,
    CompilationFailedError,
    CompilationOutcome,
    CompilerException,
    Diagnostic,
    DiagnosticKind,
    InvalidConfigurationError,
    Location,
    SymbolInstallFailed,
    TranslationError,
)
from .driver import CompilationDriver
from .line_map import LineMap, LineMapEntry, PageNode, PageStructure
from .options import OptionsBuilder, resolve_classpath
from .translator import translate
from .cli import main

# Module metadata
__version__ = "0.1.0"
__author__ = "Max Qian"
__license__ = "GPL-3.0-or-later"

# Configure default logging
logger.remove()  # Remove default handler
logger.add(
    sys.stderr,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    level="INFO"
)


__all__ = [
    # Core types
    'CompilationContext',
    'CompilationErrorDetail',
    'CompilationOutcome',
    'Diagnostic',
    'DiagnosticKind',
    'Location',
    'LineMap',
    'LineMapEntry',
    'PageNode',
    'PageStructure',

    # Exceptions
    'CompilerException',
    'BackendUnavailable',
    'BackendFault',
    'CleanupFailed',
    'TranslationError',
    'SymbolInstallFailed',
    'CompilationFailedError',
    'InvalidConfigurationError',

    # Classes
    'CompilationDriver',
    'CompilerBackend',
    'CompilerHandle',
    'JavacBackend',
    'EcjBackend',
    'OptionsBuilder',
    'Localizer',
    'ErrorDispatcher',
    'SymbolInstaller',
    'CollectingErrorDispatcher',
    'RaisingErrorDispatcher',
    'SmapFileInstaller',

    # API functions
    'compile_page',
    'compile_page_async',
    'load_context',
    'load_context_async',
    'load_line_maps_file',
    'create_backend',
    'register_backend',
    'available_backends',
    'resolve_classpath',
    'translate',

    'main'
]
