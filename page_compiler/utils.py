#!/usr/bin/env python3
"""
Utility functions for the page compiler.

Configuration files (compilation contexts, line maps, message bundles) are
JSON documents validated with pydantic. Compilers run as child processes
whose output is collected into a :class:`CommandResult`.
"""

from __future__ import annotations

import json
import os
import shutil
import subprocess
import tempfile
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, TypeVar

import aiofiles
from loguru import logger
from pydantic import BaseModel, ValidationError

from .core_types import FileOperationError, PathLike

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Exit status and decoded output of one compiler process."""

    success: bool
    stdout: str = ""
    stderr: str = ""
    return_code: int = 0
    command: List[str] = field(default_factory=list)
    execution_time: float = 0.0

    def __post_init__(self) -> None:
        if self.execution_time < 0:
            raise ValueError("execution_time cannot be negative")

    @property
    def output(self) -> str:
        """stdout followed by stderr; javac writes diagnostics to stderr."""
        return f"{self.stdout}\n{self.stderr}".strip()

    @property
    def command_str(self) -> str:
        return " ".join(self.command)


class ConfigurationManager:
    """
    Loads JSON configuration documents.

    Every failure is reported as a :class:`FileOperationError` whose
    ``error_code`` tells a missing file (``FILE_NOT_FOUND``), an unreadable
    one (``FILE_READ_ERROR``), malformed JSON (``INVALID_JSON``) and a
    document the model rejects (``INVALID_CONFIGURATION``) apart.
    """

    def load_json(self, file_path: PathLike) -> Dict[str, Any]:
        path = self._existing(file_path)
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            raise self._read_error(path, e) from e
        return self._parse(path, content)

    async def load_json_async(self, file_path: PathLike) -> Dict[str, Any]:
        """Read the document without blocking the event loop."""
        path = self._existing(file_path)
        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                content = await f.read()
        except OSError as e:
            raise self._read_error(path, e) from e
        return self._parse(path, content)

    def load_config_with_model(
        self, file_path: PathLike, model_class: Type[ModelT]
    ) -> ModelT:
        return self._validate(file_path, self.load_json(file_path), model_class)

    async def load_config_with_model_async(
        self, file_path: PathLike, model_class: Type[ModelT]
    ) -> ModelT:
        data = await self.load_json_async(file_path)
        return self._validate(file_path, data, model_class)

    @staticmethod
    def _existing(file_path: PathLike) -> Path:
        path = Path(file_path)
        if not path.exists():
            raise FileOperationError(
                f"JSON file not found: {path}",
                error_code="FILE_NOT_FOUND",
                file_path=str(path),
            )
        return path

    @staticmethod
    def _read_error(path: Path, error: OSError) -> FileOperationError:
        return FileOperationError(
            f"Failed to read file {path}: {error}",
            error_code="FILE_READ_ERROR",
            file_path=str(path),
            os_error=str(error),
        )

    @staticmethod
    def _parse(path: Path, content: str) -> Dict[str, Any]:
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise FileOperationError(
                f"Invalid JSON in file {path}: {e}",
                error_code="INVALID_JSON",
                file_path=str(path),
                json_error=str(e),
            ) from e

    @staticmethod
    def _validate(
        file_path: PathLike, data: Dict[str, Any], model_class: Type[ModelT]
    ) -> ModelT:
        try:
            return model_class.model_validate(data)
        except ValidationError as e:
            raise FileOperationError(
                f"Invalid configuration in {file_path}: {e}",
                error_code="INVALID_CONFIGURATION",
                file_path=str(file_path),
                validation_errors=e.errors(),
            ) from e


class FileManager:
    """File management helpers."""

    @staticmethod
    def create_temporary_directory(prefix: str = "page_compiler_") -> Path:
        temp_dir = Path(tempfile.mkdtemp(prefix=prefix))
        logger.debug(f"Created temporary directory: {temp_dir}")
        return temp_dir

    @staticmethod
    def remove_directory(path: PathLike) -> None:
        dir_path = Path(path)
        if dir_path.exists():
            shutil.rmtree(dir_path, ignore_errors=True)
            logger.debug(f"Cleaned up temporary directory: {dir_path}")

    @staticmethod
    def ensure_directory(path: PathLike) -> Path:
        """
        Ensure a directory exists, creating it if necessary.

        Returns:
            Path object for the directory
        """
        dir_path = Path(path)
        dir_path.mkdir(parents=True, exist_ok=True)
        return dir_path


class ProcessManager:
    """Runs compiler processes."""

    @staticmethod
    def run_command(
        command: List[str],
        timeout: Optional[float] = None,
        cwd: Optional[PathLike] = None,
        env: Optional[Dict[str, str]] = None,
    ) -> CommandResult:
        """
        Run a command to completion and collect its output.

        A command that cannot be started or outlives ``timeout`` seconds is
        reported with return code -1 and the reason in ``stderr``; it never
        raises.

        Args:
            command: Executable followed by its arguments
            timeout: Seconds to wait before killing the process
            cwd: Working directory for the command
            env: Variables added to the inherited environment
        """
        started = time.time()
        logger.debug(f"Executing command: {' '.join(command)}")

        def failed(reason: str) -> CommandResult:
            return CommandResult(
                success=False,
                stderr=reason,
                return_code=-1,
                command=command,
                execution_time=time.time() - started,
            )

        try:
            completed = subprocess.run(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                timeout=timeout,
                cwd=cwd,
                env={**os.environ, **(env or {})},
                text=False,  # Compiler output is decoded leniently below
            )
        except subprocess.TimeoutExpired:
            return failed(f"Command timed out after {timeout}s")
        except (FileNotFoundError, PermissionError):
            return failed(f"Command not found: {command[0]}")

        result = CommandResult(
            success=completed.returncode == 0,
            stdout=completed.stdout.decode("utf-8", errors="replace").strip(),
            stderr=completed.stderr.decode("utf-8", errors="replace").strip(),
            return_code=completed.returncode,
            command=command,
            execution_time=time.time() - started,
        )
        logger.debug(
            f"Command exited with code {result.return_code} "
            f"in {result.execution_time:.2f}s"
        )
        return result


def load_json(file_path: PathLike) -> Dict[str, Any]:
    """Load a JSON file using a default configuration manager."""
    return ConfigurationManager().load_json(file_path)
