#!/usr/bin/env python3
"""
Core types and data models for the page compiler.

This module provides the compilation context, the diagnostic and error records
exchanged between the backend, the translator and the error dispatcher, and the
exception hierarchy used across the package.
"""

from __future__ import annotations

import codecs
import time
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, TypeAlias, Union

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, field_validator

# Type aliases for improved type hinting
PathLike: TypeAlias = Union[str, Path]

# Baseline language level used when the context leaves source/target unset
DEFAULT_VM_VERSION = "1.8"

# Python codec names whose spelling javac does not accept
_JAVA_CHARSET_NAMES: Dict[str, str] = {
    "ascii": "US-ASCII",
    "utf-8": "UTF-8",
    "utf-16": "UTF-16",
    "utf-16-be": "UTF-16BE",
    "utf-16-le": "UTF-16LE",
    "utf-32": "UTF-32",
    "utf-32-be": "UTF-32BE",
    "utf-32-le": "UTF-32LE",
    "mac-roman": "x-MacRoman",
}


def java_charset_name(encoding: str) -> str:
    """
    Translate a character encoding name into one the Java compiler accepts.

    Aliases only Python understands (``latin-1``, ``u8``, ``utf_16_le``) are
    replaced by the Java charset name; names without a known Java spelling
    are passed through unchanged.

    Raises:
        ValueError: If Python does not know the encoding at all
    """
    try:
        name = codecs.lookup(encoding).name
    except LookupError:
        raise ValueError(f"Unknown character encoding: {encoding}") from None

    if name in _JAVA_CHARSET_NAMES:
        return _JAVA_CHARSET_NAMES[name]
    if name.startswith("iso8859-"):
        return "ISO-8859-" + name[len("iso8859-"):]
    if name.startswith("cp125"):
        return "windows-" + name[len("cp"):]
    return encoding


class DiagnosticKind(StrEnum):
    """Kinds of diagnostics a compiler backend can report."""

    ERROR = "error"
    WARNING = "warning"
    MANDATORY_WARNING = "mandatory_warning"
    NOTE = "note"
    OTHER = "other"

    @classmethod
    def from_string(cls, kind: str) -> DiagnosticKind:
        """Convert a tool-reported kind to an enum value, defaulting to OTHER."""
        normalized = kind.strip().lower().replace(" ", "_")
        try:
            return cls(normalized)
        except ValueError:
            return cls.OTHER


class Location(StrEnum):
    """File manager locations a backend handle can be configured with."""

    CLASS_OUTPUT = "class_output"
    CLASS_PATH = "class_path"


class CompilationContext(BaseModel):
    """
    Per-request compilation settings supplied by the caller.

    Mirrors what the page generator knows about one compile request: where the
    generated source lives, where classes go, and the post-compilation policy
    flags.
    """

    model_config = ConfigDict(
        extra="forbid", validate_assignment=True, str_strip_whitespace=True
    )

    scratch_dir: Path = Field(description="Directory receiving compiled classes")
    source_file: Path = Field(description="Generated source file to compile")
    class_path: str = Field(
        default="", description="Platform path-separated classpath string"
    )
    java_encoding: str = Field(
        default="UTF-8", description="Character encoding of the generated source"
    )
    class_debug_info: bool = Field(
        default=True, description="Generate debug information in class files"
    )
    compiler_source_vm: Optional[str] = Field(
        default=None, description="Source language level (None uses the default)"
    )
    compiler_target_vm: Optional[str] = Field(
        default=None, description="Target bytecode level (None uses the default)"
    )
    keep_generated: bool = Field(
        default=True, description="Keep the generated source after compilation"
    )
    prototype_mode: bool = Field(
        default=False, description="Compile-only check, skip symbol installation"
    )
    smap_suppressed: bool = Field(
        default=False, description="Do not install debug symbols (SMAP)"
    )
    extra_options: List[str] = Field(
        default_factory=list, description="Additional backend command-line tokens"
    )

    @field_validator("source_file")
    @classmethod
    def validate_source_file(cls, v: Path) -> Path:
        """Reject an empty source path."""
        if not str(v).strip() or str(v) == ".":
            raise ValueError("source_file must not be empty")
        return v

    @field_validator("java_encoding")
    @classmethod
    def validate_encoding(cls, v: str) -> str:
        """Ensure the encoding is known and spell it the way javac expects."""
        if not v:
            raise ValueError("java_encoding must not be empty")
        return java_charset_name(v)


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """
    A single diagnostic emitted by a compiler backend.

    Transient: exists only for the duration of one compile call.
    """

    kind: DiagnosticKind
    message: str
    source: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None

    @property
    def is_error(self) -> bool:
        """Check if this diagnostic is an error."""
        return self.kind == DiagnosticKind.ERROR


@dataclass(frozen=True, slots=True)
class CompilationErrorDetail:
    """An error resolved back to original template coordinates."""

    source_name: str
    line: int
    message: str
    generated_file: Optional[str] = None
    generated_line: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the dictionary shape handed to reporting layers."""
        return {
            "source_name": self.source_name,
            "line": self.line,
            "message": self.message,
        }

    def __str__(self) -> str:
        return f"{self.source_name}:{self.line}: {self.message}"


@dataclass
class CompilationOutcome:
    """Result of one driver invocation."""

    errors: Tuple[CompilationErrorDetail, ...] = ()
    options: Tuple[str, ...] = ()
    cleanup_error: Optional[CleanupFailed] = None
    source_deleted: bool = False
    symbols_installed: bool = False
    duration_ms: float = 0.0
    timestamp: float = field(default_factory=time.time)

    @property
    def has_errors(self) -> bool:
        """Check if the compiler reported errors."""
        return len(self.errors) > 0

    @property
    def success(self) -> bool:
        """A compilation succeeds when no errors were reported."""
        return not self.has_errors

    def raise_for_cleanup(self) -> None:
        """Raise the stored cleanup failure, if any."""
        if self.cleanup_error is not None:
            raise self.cleanup_error

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "success": self.success,
            "errors": [error.to_dict() for error in self.errors],
            "options": list(self.options),
            "cleanup_error": str(self.cleanup_error) if self.cleanup_error else None,
            "source_deleted": self.source_deleted,
            "symbols_installed": self.symbols_installed,
            "duration_ms": self.duration_ms,
        }


# Custom exceptions with error context
class CompilerException(Exception):
    """
    Base exception for page compiler errors.

    Fatal errors log themselves at ``log_level``; subclasses recorded or
    skipped by the driver set it to None and are logged by whoever handles
    them.
    """

    log_level: Optional[str] = "ERROR"

    def __init__(
        self, message: str, *, error_code: Optional[str] = None, **kwargs: Any
    ):
        super().__init__(message)
        self.error_code = error_code
        self.context = kwargs

        if self.log_level is not None:
            logger.bind(error_code=error_code, context=kwargs).log(
                self.log_level, f"{type(self).__name__}: {message}"
            )


class BackendUnavailable(CompilerException):
    """Raised when no compiler backend implementation can be obtained."""

    pass


class BackendFault(CompilerException):
    """Raised when the backend fails outside of normal diagnostic reporting."""

    def __init__(
        self,
        message: str,
        command: Optional[List[str]] = None,
        return_code: Optional[int] = None,
        stderr: Optional[str] = None,
        **kwargs: Any,
    ):
        super().__init__(
            message, command=command, return_code=return_code, stderr=stderr, **kwargs
        )
        self.command = command
        self.return_code = return_code
        self.stderr = stderr


class CleanupFailed(CompilerException):
    """Recorded (or raised) when the generated source cannot be deleted."""

    log_level = None


class TranslationError(CompilerException):
    """Raised when a diagnostic cannot be mapped back to template coordinates."""

    log_level = None


class SymbolInstallFailed(CompilerException):
    """Raised by symbol installers when debug symbols cannot be installed."""

    pass


class CompilationFailedError(CompilerException):
    """Raised by dispatchers that turn a reported error batch into a failure."""

    def __init__(
        self, message: str, errors: Tuple[CompilationErrorDetail, ...], **kwargs: Any
    ):
        super().__init__(message, error_count=len(errors), **kwargs)
        self.errors = tuple(errors)


class InvalidConfigurationError(CompilerException):
    """Exception raised when configuration is invalid."""

    pass


class FileOperationError(CompilerException):
    """Exception raised for file operation errors."""

    pass
