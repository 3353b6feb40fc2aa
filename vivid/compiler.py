"""
Vivid Compiler

Turns a layout/script into bytecode.

Compilation phases:
1. Parsing → one LineRecord per directive line (None for blank/comment lines)
2. Validation → the first record carrying a problem aborts compilation
3. Encoding → opcode byte, null-terminated UTF-8 arguments, closing null
4. Signature check → the buffer must open with the layout instruction

Example layout/script (fields are separated by one or more tabs):
    layout      vivid 1.0
    # get all hrefs from links
    follow      //a/@href
    remove      #
    label       links

Parsing is fail-soft: problems are attached to the records so tooling can show
the whole file with inline annotations. Only compile_records() raises.
"""

from __future__ import annotations

import logging
import re
from dataclasses import asdict, dataclass
from typing import Iterable, Optional, Sequence

from vivid.directives import DIRECTIVES, TOKEN_COMMENT, Opcode, lookup, token_for
from vivid.errors import CompileError

logger = logging.getLogger(__name__)


EOL = re.compile(r"\r?\n")
DELIMITER = re.compile(r"\t+")

NULL = b"\x00"

LAYOUT_HEADER = "layout\tvivid 1.0"

PROBLEM_NO_ARGUMENTS = "no arguments or incorrect delimiter"
PROBLEM_EMPTY_ARGUMENT = "empty argument"
PROBLEM_NO_LAYOUT = "layout directive not set or not on first line"


# ============================================================================
# Intermediate representation
# ============================================================================

@dataclass(frozen=True)
class LineRecord:
    """One directive line of a layout/script."""
    line_nr: int
    line: str
    call: str
    args: tuple[str, ...]
    problems: tuple[str, ...] = ()

    @property
    def problem(self) -> Optional[str]:
        """The last problem found on this line, if any."""
        return self.problems[-1] if self.problems else None

    @property
    def opcode(self) -> Optional[Opcode]:
        return lookup(self.call)

    def as_dict(self) -> dict:
        return asdict(self)

    def __repr__(self) -> str:
        flag = f" !{self.problem}" if self.problems else ""
        return f"<Line {self.line_nr}: {self.call} {list(self.args)}{flag}>"


# ============================================================================
# Parser
# ============================================================================

def parse_line(text: str, line_nr: int) -> Optional[LineRecord]:
    line = text.strip()
    if not line or line.startswith(TOKEN_COMMENT):
        return None

    call, *args = [part.strip() for part in DELIMITER.split(line)]

    problems = []
    if lookup(call) is None:
        problems.append(f'unsupported directive "{call}"')
    if not args:
        problems.append(PROBLEM_NO_ARGUMENTS)
    elif not all(args):
        # would encode as the 0x00 0x00 that closes the instruction
        problems.append(PROBLEM_EMPTY_ARGUMENT)

    return LineRecord(
        line_nr=line_nr,
        line=line,
        call=call,
        args=tuple(args),
        problems=tuple(problems),
    )


def parse(script: str) -> list[Optional[LineRecord]]:
    """Parse a layout/script into its intermediate representation.

    The result is aligned with the source: entry i describes line i + 1,
    and blank or comment lines are None.
    """
    return [parse_line(text, nr) for nr, text in enumerate(EOL.split(script), 1)]


def problems(records: Iterable[Optional[LineRecord]]) -> list[LineRecord]:
    """All records that would stop compilation."""
    return [r for r in records if r is not None and r.problems]


# ============================================================================
# Encoder
# ============================================================================

def encode(record: LineRecord) -> bytes:
    """opcode(1B) { utf8(arg) 0x00 }* 0x00"""
    body = b"".join(arg.encode("utf-8") + NULL for arg in record.args)
    return bytes([DIRECTIVES[record.call]]) + body + NULL


def compile_records(records: Iterable[Optional[LineRecord]]) -> bytes:
    """Encode parsed records into bytecode.

    Raises:
        CompileError: on the first record with a problem, or when the
            buffer does not open with the layout instruction
    """
    buffer = bytearray()
    count = 0

    for record in records:
        if record is None:
            continue
        if record.problems:
            raise CompileError(record.problem, record)
        buffer += encode(record)
        count += 1

    if not buffer or buffer[0] != Opcode.LAYOUT:
        raise CompileError(PROBLEM_NO_LAYOUT)

    logger.debug("compiled %d instructions into %d bytes", count, len(buffer))
    return bytes(buffer)


def compile_layout(script: str) -> bytes:
    """Compile layout/script text straight to bytecode."""
    return compile_records(parse(script))


# ============================================================================
# Decompiler
# ============================================================================

def decompile(program: Sequence, header: str = LAYOUT_HEADER) -> str:
    """Render a decoded program back into layout/script text."""
    lines = [header]
    for opcode, args in program:
        lines.append("\t".join([token_for(opcode), *args]))
    return "\n".join(lines)
