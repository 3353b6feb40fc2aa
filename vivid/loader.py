"""
Vivid Bytecode Loader

Reads compiled layout/scripts back into a program: an ordered list of
(opcode, args) instructions.

Format:
    opcode(1B) { utf8(arg) 0x00 }* 0x00     repeated, no other separators

There is no separate header. The mandatory first instruction,
`layout vivid 1.0`, doubles as the signature:

    offset 0      0x08 'v' 'i' 'v' 'i' 'd'   signature (6 bytes)
    offset 7      '1' '.' '0'                version, ASCII decimal
    offset 12     first program instruction

The layout instruction is consumed by the header checks and is not part of
the returned program.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Union

from kaitaistruct import KaitaiStream

from vivid.directives import Opcode, token_for
from vivid.errors import LoaderError

logger = logging.getLogger(__name__)


SIGNATURE = bytes([Opcode.LAYOUT]) + b"vivid"
VERSION_OFFSET = len(SIGNATURE) + 1
VERSION_LENGTH = 3
PROGRAM_OFFSET = VERSION_OFFSET + 5

SUPPORTED_VERSION = 1.0


@dataclass(frozen=True)
class Instruction:
    """One decoded instruction. Unpacks as (opcode, args)."""
    opcode: int
    args: tuple[str, ...]

    @property
    def directive(self) -> str:
        try:
            return token_for(self.opcode)
        except KeyError:
            return f"<{self.opcode:#04x}>"

    def __iter__(self) -> Iterator:
        return iter((self.opcode, self.args))

    def __repr__(self) -> str:
        return f"<{self.directive} {list(self.args)}>"


def _check_header(stream: KaitaiStream) -> str:
    if stream.size() < len(SIGNATURE) or stream.read_bytes(len(SIGNATURE)) != SIGNATURE:
        raise LoaderError("vivid does not support this layout/script")

    stream.seek(VERSION_OFFSET)
    available = max(0, min(VERSION_LENGTH, stream.size() - VERSION_OFFSET))
    version = stream.read_bytes(available).decode("ascii", errors="replace")
    try:
        supported = float(version) <= SUPPORTED_VERSION
    except ValueError:
        supported = False
    if not supported:
        raise LoaderError(f"vivid does not support this version {version}")
    return version


def _read_args(stream: KaitaiStream) -> list[str]:
    """Null-terminated arguments up to the closing 0x00 0x00 pair or EOF."""
    args = []
    while True:
        raw = stream.read_bytes_term(0, False, True, False)
        args.append(raw.decode("utf-8", errors="replace"))
        if stream.is_eof():
            return args
        pos = stream.pos()
        if stream.read_u1() == 0:
            return args
        stream.seek(pos)


def read_program(bytecode: Union[bytes, bytearray]) -> list[Instruction]:
    """Decode bytecode into a program.

    Raises:
        LoaderError: if the signature does not match or the version is
            newer than SUPPORTED_VERSION
    """
    stream = KaitaiStream(io.BytesIO(bytes(bytecode)))
    version = _check_header(stream)

    program: list[Instruction] = []
    stream.seek(min(PROGRAM_OFFSET, stream.size()))
    while not stream.is_eof():
        opcode = stream.read_u1()
        if stream.is_eof():
            break
        program.append(Instruction(opcode, tuple(_read_args(stream))))

    logger.debug("loaded %d instructions (layout version %s)", len(program), version)
    return program


def read_file(path: Union[str, Path]) -> list[Instruction]:
    return read_program(Path(path).read_bytes())
