"""
Vivid Directive Registry

The closed set of 14 directives. Each textual token maps to exactly one
opcode, and each opcode to exactly one handler (see vivid.handlers).

    layout    vivid 1.0             header, doubles as the file signature
    follow    xpath                 XPath query, cast to text
    select    css.selector          CSS selector query
    bundle    xpath | *             scope later queries to a node-set
    extract   regex                 first capture group
    replace   regex text            global substitution
    remove    text                  drop first occurrence
    insert    placeholder text      fill a template
    glue      prefix                prepend text
    drop      regex                 filter out matches
    keep      regex                 filter in matches
    style     property              computed CSS value of visited nodes
    prompt    command [args...]     delegate to a host command
    label     name                  store the top frame in the repository
"""

from __future__ import annotations

from enum import IntEnum
from types import MappingProxyType
from typing import Optional


class Opcode(IntEnum):
    LAYOUT = 0x08

    FOLLOW = 0x31
    SELECT = 0x32
    BUNDLE = 0x33

    EXTRACT = 0x51
    REPLACE = 0x52
    REMOVE = 0x53
    INSERT = 0x54
    GLUE = 0x55
    DROP = 0x56
    KEEP = 0x57

    STYLE = 0x91

    LABEL = 0xAC
    PROMPT = 0xDD


TOKEN_COMMENT = "#"

# replace's stand-in for a literal space, which a tab-delimited token can't carry
KWD_SPACE = "<space>"

# bundle argument that returns to global mode
KWD_NO_BUNDLE = "*"


DIRECTIVES = MappingProxyType({
    "layout": Opcode.LAYOUT,

    "follow": Opcode.FOLLOW,
    "select": Opcode.SELECT,
    "bundle": Opcode.BUNDLE,

    "extract": Opcode.EXTRACT,
    "replace": Opcode.REPLACE,
    "remove": Opcode.REMOVE,
    "insert": Opcode.INSERT,
    "glue": Opcode.GLUE,
    "drop": Opcode.DROP,
    "keep": Opcode.KEEP,

    "style": Opcode.STYLE,

    "prompt": Opcode.PROMPT,
    "label": Opcode.LABEL,
})

TOKENS = MappingProxyType({opcode: token for token, opcode in DIRECTIVES.items()})

if not len(DIRECTIVES) == len(TOKENS) == len(Opcode) == 14:
    raise RuntimeError("directive table is not one token per opcode")


def lookup(token: str) -> Optional[Opcode]:
    """Opcode for a directive token, or None if the token is not registered."""
    return DIRECTIVES.get(token)


def token_for(opcode: int) -> str:
    try:
        return TOKENS[Opcode(opcode)]
    except ValueError:
        raise KeyError(f"Unknown opcode {opcode:#04x}") from None
