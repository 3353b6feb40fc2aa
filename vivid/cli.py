#!/usr/bin/env python3
"""
Vivid - declarative content extraction

Command-line interface for layout/scripts.

Usage:
    vivid inspect <layout>              Annotated listing with inline problems
    vivid compile <layout> [-o out]     Compile a layout/script to bytecode
    vivid disasm <bytecode>             Print compiled bytecode as layout text
    vivid run <layout> <html>           Run a layout (text or bytecode) on a page
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import textwrap
from pathlib import Path
from typing import Optional

from vivid.compiler import compile_layout, decompile, parse
from vivid.document import HtmlDocument
from vivid.errors import CompileError, VividError
from vivid.loader import SIGNATURE, read_file, read_program
from vivid.runtime import Interpreter

logger = logging.getLogger(__name__)

BYTECODE_SUFFIX = ".vvd"


# ============================================================================
# Formatting helpers
# ============================================================================

class C:
    """ANSI colors."""
    BOLD = "\033[1m"
    DIM = "\033[2m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    CYAN = "\033[36m"
    RESET = "\033[0m"

    @staticmethod
    def off():
        C.BOLD = C.DIM = C.RED = C.GREEN = C.YELLOW = C.CYAN = C.RESET = ""


def header(text: str) -> str:
    return f"\n{C.BOLD}{C.CYAN}{'─' * 60}{C.RESET}\n{C.BOLD}  {text}{C.RESET}\n{C.BOLD}{C.CYAN}{'─' * 60}{C.RESET}"


def ok(text: str) -> str:
    return f"  {C.GREEN}✓{C.RESET} {text}"


def warn(text: str) -> str:
    return f"  {C.YELLOW}⚠{C.RESET} {text}"


def fail(text: str) -> str:
    return f"  {C.RED}✗{C.RESET} {text}"


def dim(text: str) -> str:
    return f"{C.DIM}{text}{C.RESET}"


def listing(script: str) -> list[str]:
    """Render parsed lines as a table; problems are shown under their line."""
    records = [r for r in parse(script) if r is not None]
    width = max((len(r.args[0]) for r in records if r.args), default=0)
    separator = " |"

    lines = []
    for record in records:
        first = record.args[0] if record.args else ""
        rest = "\t".join(record.args[1:])
        lines.append(
            f"{record.line_nr:4d}{separator} {record.call:<10s}{separator} "
            f"{first:<{width}s}{separator} {rest}".rstrip()
        )
        for problem in record.problems:
            lines.append(f"     |\n     ↳ {C.RED}{problem}{C.RESET}")
    return lines


def load(path: Path) -> Interpreter:
    """Layout text or compiled bytecode, told apart by the signature."""
    data = path.read_bytes()
    if data.startswith(SIGNATURE):
        logger.debug("%s: bytecode", path)
        return Interpreter(read_program(data))
    return Interpreter.from_bytecode(compile_layout(data.decode("utf-8")))


# ============================================================================
# Commands
# ============================================================================

def cmd_inspect(args):
    script = Path(args.layout).read_text(encoding="utf-8")
    print(header(f"Layout: {args.layout}"))

    error = None
    try:
        compile_layout(script)
    except CompileError as e:
        error = e

    for line in listing(script):
        print(line)

    if error is None:
        print(f"\n{ok('compiles cleanly')}")
    else:
        print(f"\n{fail(str(error))}")
        sys.exit(1)


def cmd_compile(args):
    source = Path(args.layout)
    script = source.read_text(encoding="utf-8")
    try:
        bytecode = compile_layout(script)
    except CompileError as e:
        for line in listing(script):
            print(line)
        print(fail(str(e)))
        sys.exit(1)

    output = Path(args.output) if args.output else source.with_suffix(BYTECODE_SUFFIX)
    output.write_bytes(bytecode)
    program = read_program(bytecode)
    print(ok(f"{len(program)} instructions, {len(bytecode)} bytes → {output}"))


def cmd_disasm(args):
    program = read_file(args.bytecode)
    if args.raw:
        for i, instruction in enumerate(program):
            print(f"  [{i:3d}] {instruction.opcode:#04x} {instruction.directive:<8s} {list(instruction.args)}")
        return
    print(decompile(program))


def cmd_run(args):
    interpreter = load(Path(args.layout))
    ctx = interpreter.context
    ctx.setup(HtmlDocument.from_file(args.html))
    ctx.register("debug", lambda frame, *extra: print(dim(f"  debug {list(extra)} {frame}")))

    if args.step:
        print(header(f"Stepping {args.layout} on {args.html}"))
        for i, instruction in enumerate(interpreter.program):
            step = interpreter.step()
            print(f"\n  {C.BOLD}[{i + 1}] {instruction.directive}{C.RESET} {dim(' '.join(instruction.args))}")
            for value in step.output:
                print(f"      {value!r}")

    result = interpreter.run()

    if args.json:
        print(json.dumps(ctx.repository.as_dict(), indent=2, ensure_ascii=False))
        return

    print(header(f"Repository ({len(interpreter)} instructions)"))
    if not result.repository:
        print(warn("nothing labeled"))
    for name, values in result.repository.items():
        print(f"\n  {C.BOLD}{name}{C.RESET} {dim(f'({len(values)})')}")
        for value in values:
            print(f"    {value}")


# ============================================================================
# CLI setup
# ============================================================================

def main(argv: Optional[list[str]] = None):
    parser = argparse.ArgumentParser(
        prog="vivid",
        description="Vivid - declarative content extraction",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""
        examples:
          vivid inspect links.ls
          vivid compile links.ls -o links.vvd
          vivid disasm links.vvd
          vivid run links.vvd page.html --json
          vivid run links.ls page.html --step
        """),
    )
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")

    sub = parser.add_subparsers(dest="command", help="Command to run")

    p = sub.add_parser("inspect", help="Show parsed lines and problems")
    p.add_argument("layout", help="Layout/script text file")

    p = sub.add_parser("compile", help="Compile a layout/script to bytecode")
    p.add_argument("layout", help="Layout/script text file")
    p.add_argument("-o", "--output", help=f"Output path (default: <layout>{BYTECODE_SUFFIX})")

    p = sub.add_parser("disasm", help="Print bytecode as layout text")
    p.add_argument("bytecode", help="Compiled layout/script")
    p.add_argument("--raw", action="store_true", help="Show opcodes and argument lists")

    p = sub.add_parser("run", help="Run a layout/script against an HTML file")
    p.add_argument("layout", help="Layout/script, text or bytecode")
    p.add_argument("html", help="HTML file")
    p.add_argument("--json", action="store_true", help="Print the repository as JSON")
    p.add_argument("--step", action="store_true", help="Show the output of every instruction")

    args = parser.parse_args(argv)

    if args.no_color:
        C.off()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="[%(levelname)s] %(name)s: %(message)s")

    if not args.command:
        parser.print_help()
        return

    commands = {
        "inspect": cmd_inspect,
        "compile": cmd_compile,
        "disasm": cmd_disasm,
        "run": cmd_run,
    }

    try:
        commands[args.command](args)
    except FileNotFoundError as e:
        print(fail(f"File not found: {e}"))
        sys.exit(1)
    except VividError as e:
        print(fail(f"Error: {e}"))
        sys.exit(1)


if __name__ == "__main__":
    main()
