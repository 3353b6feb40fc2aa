"""
Vivid Directive Handlers

One function per directive. Every handler has the same shape:

    handler(ctx, stack, *args) -> stack

`stack` is the interpreter's memory stack, a list of frames (lists of
strings). Handlers never mutate it: data directives return a new stack with
one more frame, side-effect directives (bundle, label, prompt) return the
stack they were given. Apart from `layout` and malformed regular
expressions, handlers are total: no match means empty strings or empty
frames, never an error.
"""

from __future__ import annotations

import logging
import math
import re
from decimal import Decimal
from types import MappingProxyType
from typing import Any, Callable

from vivid.context import ExecutionContext, XPathResult, XPathResultType
from vivid.directives import KWD_NO_BUNDLE, KWD_SPACE, Opcode
from vivid.errors import InterpreterError

logger = logging.getLogger(__name__)

Frame = list[str]
Stack = list[Frame]
Handler = Callable[..., Stack]


def top(stack: Stack) -> Frame:
    """Copy of the most recent frame ([] on an empty stack)."""
    return list(stack[-1]) if stack else []


def push(stack: Stack, frame: Frame) -> Stack:
    return [*stack, frame]


def _pattern(directive: str, expr: str) -> re.Pattern:
    try:
        return re.compile(expr)
    except re.error as e:
        raise InterpreterError(f"{directive}: bad regular expression {expr!r}: {e}") from e


def _number(value: float) -> str:
    """Format like JavaScript's Number#toString (radix 10)."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"

    # shortest round-tripping digits, laid out by ECMAScript's rules
    sign, digits, exponent = Decimal(repr(float(value))).as_tuple()
    digits = list(digits)
    while len(digits) > 1 and digits[-1] == 0:
        digits.pop()
        exponent += 1
    s = "".join(map(str, digits))
    k = len(s)
    n = exponent + k

    if k <= n <= 21:
        text = s + "0" * (n - k)
    elif 0 < n <= 21:
        text = s[:n] + "." + s[n:]
    elif -6 < n <= 0:
        text = "0." + "0" * -n + s
    else:
        e = n - 1
        mantissa = s[0] + ("." + s[1:] if k > 1 else "")
        text = f"{mantissa}e{'+' if e >= 0 else '-'}{abs(e)}"
    return "-" + text if sign else text


def _scalar(result: XPathResult) -> str:
    if result.type is XPathResultType.NUMBER:
        return _number(result.value)
    if result.type is XPathResultType.BOOLEAN:
        return "true" if result.value else "false"
    return str(result.value)


def _text(ctx: ExecutionContext, node: Any) -> str:
    if node is None:
        return ""
    return ctx.document.text_content(node) or ""


# ============================================================================
# html
# ============================================================================

def _follow_global(ctx: ExecutionContext, xpath: str) -> Frame:
    result = ctx.document.evaluate(xpath)

    if result.type is XPathResultType.NODE:
        if result.value is not None:
            ctx.visited_nodes.append(result.value)
        return [_text(ctx, result.value)]

    if result.type is not XPathResultType.NODESET:
        return [_scalar(result)]

    values = []
    for node in result.nodes:
        values.append(_text(ctx, node))
        ctx.visited_nodes.append(node)
    return values


def _follow_scoped(ctx: ExecutionContext, xpath: str) -> Frame:
    values = []
    for element in ctx.bundle:
        result = ctx.document.evaluate(xpath, element)
        if result.type in (XPathResultType.NODE, XPathResultType.NODESET):
            nodes = result.nodes
            node = nodes[0] if nodes else None
            values.append(_text(ctx, node))
        else:
            node = None
            values.append(_scalar(result))
        ctx.visited_nodes.append(node)
    return values


def follow(ctx: ExecutionContext, stack: Stack, xpath: str, *_: str) -> Stack:
    """XPath query cast to text.

    Global mode yields one string per matched node (or one string for
    number/string/boolean results). Inside a bundle it yields exactly one
    string per bundled element: its first match, or "".
    """
    ctx.visited_nodes = []
    if ctx.bundle is None:
        return push(stack, _follow_global(ctx, xpath))
    return push(stack, _follow_scoped(ctx, xpath))


def select(ctx: ExecutionContext, stack: Stack, selector: str, *_: str) -> Stack:
    """CSS selector query; same global/scoped split as follow."""
    ctx.visited_nodes = []
    values = []

    if ctx.bundle is None:
        for element in ctx.document.query_selector_all(selector):
            values.append(_text(ctx, element))
            ctx.visited_nodes.append(element)
    else:
        # unlike follow, the bundled element itself is recorded
        for item in ctx.bundle:
            element = ctx.document.query_selector(selector, item)
            values.append(_text(ctx, element))
            ctx.visited_nodes.append(item)

    return push(stack, values)


def bundle(ctx: ExecutionContext, stack: Stack, xpath: str, *_: str) -> Stack:
    if xpath == KWD_NO_BUNDLE:
        ctx.bundle = None
        return stack

    ctx.bundle = ctx.document.evaluate(xpath).nodes
    ctx.visited_nodes = list(ctx.bundle)
    logger.debug("bundle %r scoped to %d nodes", xpath, len(ctx.bundle))
    return stack


# ============================================================================
# css
# ============================================================================

def style(ctx: ExecutionContext, stack: Stack, prop: str, *_: str) -> Stack:
    """Computed value of `prop` for every node the last query visited."""
    return push(stack, [
        ctx.document.computed_style(node, prop) if node is not None else ""
        for node in ctx.visited_nodes
    ])


# ============================================================================
# text
# ============================================================================

# JavaScript replacement patterns: $$, $& and $1..$99
_REFERENCE = re.compile(r"\$(\$|&|\d\d?)")


def _expand(match: re.Match, template: str) -> str:
    groups = match.re.groups

    def ref(token: re.Match) -> str:
        name = token.group(1)
        if name == "$":
            return "$"
        if name == "&":
            return match.group(0)
        if len(name) == 2 and 1 <= int(name) <= groups:
            return match.group(int(name)) or ""
        if 1 <= int(name[0]) <= groups:
            return (match.group(int(name[0])) or "") + name[1:]
        return token.group(0)

    return _REFERENCE.sub(ref, template)


def extract(ctx: ExecutionContext, stack: Stack, expr: str, *_: str) -> Stack:
    """First capture group of the first match, "" otherwise."""
    pattern = _pattern("extract", expr)
    values = []
    for text in top(stack):
        match = pattern.search(text)
        values.append((match.group(1) or "") if match and pattern.groups else "")
    return push(stack, values)


def replace(ctx: ExecutionContext, stack: Stack, expr: str, text: str = "", *_: str) -> Stack:
    pattern = _pattern("replace", expr)
    replacement = " " if text == KWD_SPACE else text
    return push(stack, [
        pattern.sub(lambda m: _expand(m, replacement), value) for value in top(stack)
    ])


def remove(ctx: ExecutionContext, stack: Stack, text: str, *_: str) -> Stack:
    # first occurrence only, unlike replace
    return push(stack, [value.replace(text, "", 1) for value in top(stack)])


def insert(ctx: ExecutionContext, stack: Stack, placeholder: str, template: str = "", *_: str) -> Stack:
    return push(stack, [template.replace(placeholder, value, 1) for value in top(stack)])


def glue(ctx: ExecutionContext, stack: Stack, prefix: str, *_: str) -> Stack:
    return push(stack, [prefix + value for value in top(stack)])


def drop(ctx: ExecutionContext, stack: Stack, expr: str, *_: str) -> Stack:
    pattern = _pattern("drop", expr)
    return push(stack, [value for value in top(stack) if not pattern.search(value)])


def keep(ctx: ExecutionContext, stack: Stack, expr: str, *_: str) -> Stack:
    pattern = _pattern("keep", expr)
    return push(stack, [value for value in top(stack) if pattern.search(value)])


# ============================================================================
# side effects
# ============================================================================

def label(ctx: ExecutionContext, stack: Stack, name: str, *_: str) -> Stack:
    ctx.repository.append(name, top(stack))
    return stack


def prompt(ctx: ExecutionContext, stack: Stack, command: str, *args: str) -> Stack:
    handler = ctx.commands.get(command)
    if handler is None:
        logger.warning("prompt %r: no such command, skipped", command)
        return stack
    handler(top(stack), *args)
    return stack


def layout(ctx: ExecutionContext, stack: Stack, *_: str) -> Stack:
    raise InterpreterError("directive can be used only on first line as layout vivid")


HANDLERS = MappingProxyType({
    Opcode.LAYOUT: layout,
    Opcode.PROMPT: prompt,
    Opcode.LABEL: label,
    Opcode.FOLLOW: follow,
    Opcode.SELECT: select,
    Opcode.BUNDLE: bundle,
    Opcode.EXTRACT: extract,
    Opcode.REPLACE: replace,
    Opcode.REMOVE: remove,
    Opcode.INSERT: insert,
    Opcode.GLUE: glue,
    Opcode.DROP: drop,
    Opcode.KEEP: keep,
    Opcode.STYLE: style,
})

if set(HANDLERS) != set(Opcode):
    raise RuntimeError(f"no handler for {sorted(set(Opcode) - set(HANDLERS))}")
