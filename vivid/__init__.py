"""
Vivid - declarative content extraction
A tab-delimited layout/script language compiled to bytecode and interpreted
against a queryable document.

Compiler: layout text → line records → bytecode
Loader: bytecode → program (opcode, args) instructions
Runtime: program → memory stack + labeled values in a Repository
"""

__version__ = "1.0.0"

from vivid.directives import Opcode, DIRECTIVES
from vivid.errors import VividError, CompileError, LoaderError, InterpreterError
from vivid.compiler import LineRecord, parse, compile_records, compile_layout, decompile
from vivid.loader import Instruction, read_program, SUPPORTED_VERSION
from vivid.context import (
    DocumentQuery,
    ExecutionContext,
    Repository,
    XPathResult,
    XPathResultType,
)
from vivid.runtime import Interpreter, ExecutionResult, Step

__all__ = [
    "Opcode",
    "DIRECTIVES",
    "VividError",
    "CompileError",
    "LoaderError",
    "InterpreterError",
    "LineRecord",
    "parse",
    "compile_records",
    "compile_layout",
    "decompile",
    "Instruction",
    "read_program",
    "SUPPORTED_VERSION",
    "DocumentQuery",
    "ExecutionContext",
    "Repository",
    "XPathResult",
    "XPathResultType",
    "Interpreter",
    "ExecutionResult",
    "Step",
]
