#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Command-line interface for the page compiler.
"""
import argparse
import json
import sys
from pathlib import Path

from loguru import logger

from .api import compile_page, load_context, load_line_maps_file
from .backends import available_backends
from .core_types import CompilationContext, CompilerException


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Compile a generated page source and report page-level errors",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Compile a generated servlet into ./classes
  python -m page_compiler index_jsp.java --scratch-dir ./classes --classpath lib/servlet-api.jar

  # Map errors back to the page using the generator's line maps
  python -m page_compiler index_jsp.java --scratch-dir ./classes --line-map smaps.json --json

  # Load every setting from a context file
  python -m page_compiler --config context.json
""",
    )

    parser.add_argument(
        "source_file", nargs="?", type=Path, help="Generated source file to compile"
    )
    parser.add_argument(
        "--config", type=Path, help="JSON file holding the compilation context"
    )
    parser.add_argument(
        "--backend",
        default="javac",
        choices=available_backends(),
        help="Compiler backend to use",
    )
    parser.add_argument("--executable", help="Path to the compiler executable")
    parser.add_argument(
        "--timeout", type=float, help="Abort the compiler after this many seconds"
    )
    parser.add_argument(
        "--line-map", type=Path, help="JSON file with line maps per generated file"
    )
    parser.add_argument(
        "--json", action="store_true", help="Print the outcome as JSON"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )

    context_group = parser.add_argument_group("Context options")
    context_group.add_argument(
        "--scratch-dir", type=Path, help="Directory receiving compiled classes"
    )
    context_group.add_argument(
        "--classpath", default="", help="Classpath, separated by the platform separator"
    )
    context_group.add_argument(
        "--encoding", default="UTF-8", help="Encoding of the generated source"
    )
    context_group.add_argument("--source", dest="source_vm", help="Source level")
    context_group.add_argument("--target", dest="target_vm", help="Target level")
    context_group.add_argument(
        "--no-debug", action="store_true", help="Compile without debug information"
    )
    context_group.add_argument(
        "--delete-generated",
        action="store_true",
        help="Delete the generated source after compiling",
    )
    context_group.add_argument(
        "--prototype", action="store_true", help="Check only, skip SMAP installation"
    )
    context_group.add_argument(
        "--suppress-smap", action="store_true", help="Do not install SMAPs"
    )
    return parser


def context_from_args(args: argparse.Namespace) -> CompilationContext:
    if args.config:
        return load_context(args.config)

    return CompilationContext(
        scratch_dir=args.scratch_dir or Path(args.source_file).parent,
        source_file=args.source_file,
        class_path=args.classpath,
        java_encoding=args.encoding,
        class_debug_info=not args.no_debug,
        compiler_source_vm=args.source_vm,
        compiler_target_vm=args.target_vm,
        keep_generated=not args.delete_generated,
        prototype_mode=args.prototype,
        smap_suppressed=args.suppress_smap,
    )


def main(argv=None) -> int:
    """
    Main function for command-line usage.

    Returns:
        0 on success, 1 when the page has compile errors, 2 on fatal errors
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logger.remove()
        logger.add(sys.stderr, level="DEBUG")

    if args.config is None and args.source_file is None:
        parser.error("a source file or --config is required")

    backend_options = {"timeout": args.timeout}
    if args.executable:
        backend_options["executable"] = args.executable

    try:
        context = context_from_args(args)
        line_maps = load_line_maps_file(args.line_map) if args.line_map else None
        outcome = compile_page(
            context, line_maps, backend=args.backend, **backend_options
        )
    except CompilerException as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    except ValueError as e:
        print(f"error: invalid compilation context: {e}", file=sys.stderr)
        return 2

    if args.json:
        print(json.dumps(outcome.to_dict(), indent=2))
    else:
        for error in outcome.errors:
            print(error)
        if outcome.cleanup_error is not None:
            print(f"warning: {outcome.cleanup_error}", file=sys.stderr)
        if outcome.success:
            print(f"Compiled {context.source_file} in {outcome.duration_ms:.0f}ms")

    return 0 if outcome.success else 1
