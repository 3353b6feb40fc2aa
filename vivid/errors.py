"""
Vivid Errors

Three fatal tiers share one base class. Parse diagnostics are not errors:
they travel as data on each LineRecord so a whole file can be reviewed.
"""

from __future__ import annotations

from typing import Any, Optional


class VividError(Exception):
    """Base class for every fatal vivid error."""


class CompileError(VividError):
    """Raised on the first defective line, or when the layout header is missing."""

    def __init__(self, message: str, record: Optional[Any] = None):
        if record is not None:
            message = f"Line {record.line_nr}: {message} ({record.line!r})"
        super().__init__(message)
        self.record = record

    @property
    def line_nr(self) -> Optional[int]:
        return self.record.line_nr if self.record is not None else None

    @property
    def line(self) -> Optional[str]:
        return self.record.line if self.record is not None else None

    @property
    def call(self) -> Optional[str]:
        return self.record.call if self.record is not None else None

    @property
    def args(self) -> tuple[str, ...]:
        return self.record.args if self.record is not None else ()

    @property
    def problem(self) -> Optional[str]:
        return self.record.problem if self.record is not None else str(self)


class LoaderError(VividError):
    """Bytecode rejected: bad signature or unsupported version."""


class InterpreterError(VividError):
    def __init__(self, message: str, index: Optional[int] = None, opcode: Optional[int] = None):
        where = f" at instruction {index}" if index is not None else ""
        code = f" (opcode {opcode:#04x})" if opcode is not None else ""
        super().__init__(f"Interpreter error{where}{code}: {message}")
        self.message = message
        self.index = index
        self.opcode = opcode
