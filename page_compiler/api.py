#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
High-level API for the page compiler.
"""
import asyncio
from typing import Dict, Mapping, Optional, Union

from .backends import CompilerBackend, create_backend
from .collaborators import (
    CollectingErrorDispatcher,
    ErrorDispatcher,
    SmapFileInstaller,
    SymbolInstaller,
)
from .core_types import CompilationContext, CompilationOutcome, PathLike
from .driver import CompilationDriver
from .line_map import LineMap, PageStructure, load_line_maps
from .utils import ConfigurationManager, load_json

config_manager = ConfigurationManager()


def load_context(file_path: PathLike) -> CompilationContext:
    """Load a compilation context from a JSON file."""
    return config_manager.load_config_with_model(file_path, CompilationContext)


async def load_context_async(file_path: PathLike) -> CompilationContext:
    """Load a compilation context from a JSON file without blocking the loop."""
    return await config_manager.load_config_with_model_async(
        file_path, CompilationContext
    )


def load_line_maps_file(file_path: PathLike) -> Dict[str, LineMap]:
    """Load ``{generated_file: line map}`` metadata from a JSON file."""
    return load_line_maps(load_json(file_path))


def compile_page(context: CompilationContext,
                 line_maps: Optional[Mapping[str, LineMap]] = None,
                 page_structure: Optional[PageStructure] = None,
                 backend: Union[str, CompilerBackend] = "javac",
                 dispatcher: Optional[ErrorDispatcher] = None,
                 symbol_installer: Optional[SymbolInstaller] = None,
                 **backend_options) -> CompilationOutcome:
    """
    Compile one generated page source.

    Errors go to a collecting dispatcher and SMAPs are written into the
    scratch directory unless other collaborators are given.
    """
    if not isinstance(backend, CompilerBackend):
        backend = create_backend(backend, **backend_options)

    driver = CompilationDriver(
        backend,
        dispatcher or CollectingErrorDispatcher(),
        symbol_installer or SmapFileInstaller(context.scratch_dir),
    )
    return driver.compile(context, line_maps, page_structure)


async def compile_page_async(context: CompilationContext,
                             line_maps: Optional[Mapping[str, LineMap]] = None,
                             page_structure: Optional[PageStructure] = None,
                             backend: Union[str, CompilerBackend] = "javac",
                             dispatcher: Optional[ErrorDispatcher] = None,
                             symbol_installer: Optional[SymbolInstaller] = None,
                             **backend_options) -> CompilationOutcome:
    """
    Compile one generated page source in a worker thread.

    Cancelling the awaiting task does not stop a compiler that is already
    running; bound compile time with the backend's ``timeout`` instead.
    """
    return await asyncio.to_thread(
        compile_page,
        context,
        line_maps,
        page_structure,
        backend,
        dispatcher,
        symbol_installer,
        **backend_options,
    )
