#!/usr/bin/env python3
"""
Line-mapping metadata produced by the page generator.

Two views of the same relationship are supported: a JSR-45 style stratum
(``LineMap``) mapping generated lines to template lines, and the generator's
page tree (``PageStructure``) whose nodes remember which generated lines they
emitted.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator


class LineMapEntry(BaseModel):
    """One line section of a stratum (``in_start#file,count:out_start,incr``)."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    input_start_line: int = Field(ge=1)
    output_start_line: int = Field(ge=1)
    input_line_count: int = Field(default=1, ge=1)
    output_line_increment: int = Field(default=1, ge=0)
    file_id: int = Field(default=0, ge=0)

    @property
    def output_end_line(self) -> int:
        """First generated line after this entry."""
        if self.output_line_increment == 0:
            return self.output_start_line + 1
        return (
            self.output_start_line
            + self.input_line_count * self.output_line_increment
        )

    def resolve(self, output_line: int) -> Optional[int]:
        """Map a generated line to the template line, or None if not covered."""
        if not self.output_start_line <= output_line < self.output_end_line:
            return None
        offset = output_line - self.output_start_line
        if self.output_line_increment == 0:
            return self.input_start_line
        return self.input_start_line + offset // self.output_line_increment

    def to_smap(self, previous_file_id: Optional[int]) -> str:
        line = str(self.input_start_line)
        if self.file_id != previous_file_id:
            line += f"#{self.file_id}"
        if self.input_line_count != 1:
            line += f",{self.input_line_count}"
        line += f":{self.output_start_line}"
        if self.output_line_increment != 1:
            line += f",{self.output_line_increment}"
        return line


class LineMap(BaseModel):
    """Generated-line to template-line table for one generated source file."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    generated_file: str = Field(description="Generated source file name")
    class_name: str = Field(description="Fully qualified name of the compiled class")
    stratum: str = Field(default="JSP", description="SMAP stratum name")
    files: Dict[int, str] = Field(
        default_factory=dict, description="File id to template path"
    )
    entries: List[LineMapEntry] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_file_ids(self) -> LineMap:
        """Every entry must reference a declared file."""
        for entry in self.entries:
            if entry.file_id not in self.files:
                raise ValueError(
                    f"Line map entry references unknown file id {entry.file_id}"
                )
        return self

    def resolve(self, output_line: int) -> Optional[Tuple[str, int]]:
        """
        Resolve a generated line to template coordinates.

        Returns:
            ``(template_file, template_line)`` or None if no entry covers the line
        """
        for entry in self.entries:
            input_line = entry.resolve(output_line)
            if input_line is not None:
                return self.files[entry.file_id], input_line
        return None

    @property
    def class_file(self) -> Path:
        """Class file path relative to the output directory."""
        return Path(*self.class_name.split(".")).with_suffix(".class")

    def to_smap(self) -> str:
        """Render the map as JSR-45 SMAP text."""
        lines = ["SMAP", Path(self.generated_file).name, self.stratum]
        lines.append(f"*S {self.stratum}")
        lines.append("*F")
        for file_id, path in sorted(self.files.items()):
            lines.append(f"+ {file_id} {Path(path).name}")
            lines.append(path.lstrip("/"))
        lines.append("*L")
        previous: Optional[int] = None
        for entry in self.entries:
            lines.append(entry.to_smap(previous))
            previous = entry.file_id
        lines.append("*E")
        return "\n".join(lines) + "\n"


class PageNode(BaseModel):
    """A node of the generator's page tree."""

    model_config = ConfigDict(extra="forbid")

    source_file: str = Field(description="Template file the node came from")
    start_line: int = Field(ge=1, description="Template line where the node starts")
    generated_start_line: int = Field(ge=1)
    generated_end_line: int = Field(ge=1, description="Exclusive end line")
    line_for_line: bool = Field(
        default=False,
        description="Generated lines follow template lines one to one (scriptlets, declarations)",
    )
    children: List[PageNode] = Field(default_factory=list)

    def covers(self, line: int) -> bool:
        return self.generated_start_line <= line < self.generated_end_line

    def template_line(self, line: int) -> int:
        """Template line of a generated line this node covers."""
        if self.line_for_line:
            return self.start_line + (line - self.generated_start_line)
        return self.start_line


class PageStructure(BaseModel):
    """Top-level nodes of a translated page."""

    model_config = ConfigDict(extra="forbid")

    nodes: List[PageNode] = Field(default_factory=list)

    def find_node(self, line: int) -> Optional[PageNode]:
        """Return the deepest node whose generated range covers ``line``."""
        found: Optional[PageNode] = None
        candidates = self.nodes
        while candidates:
            match = next((node for node in candidates if node.covers(line)), None)
            if match is None:
                break
            found = match
            candidates = match.children
        return found


def load_line_maps(data: Dict[str, dict]) -> Dict[str, LineMap]:
    """Validate a ``{generated_file: line map}`` mapping."""
    return {name: LineMap.model_validate(raw) for name, raw in data.items()}
