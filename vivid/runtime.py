"""
Vivid Runtime Engine

Executes decoded programs one instruction at a time.

The Interpreter:
1. Takes a program (from vivid.loader) and an ExecutionContext
2. On each step, dispatches one instruction to its handler
3. Replaces the memory stack with the handler's result
4. Leaves labeled output in the context's Repository

Nothing runs in the background: all work happens inside step(), so a
caller can single-step, iterate, or run() to completion, and stop at any
point without cleanup.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from vivid.context import ExecutionContext
from vivid.errors import InterpreterError
from vivid.handlers import HANDLERS, Stack, top
from vivid.loader import Instruction, read_program

logger = logging.getLogger(__name__)


@dataclass
class Step:
    """Outcome of one step() call."""
    done: bool
    stack: Stack
    instruction: Optional[Instruction] = None

    @property
    def output(self) -> list[str]:
        """The frame on top of the stack after this step."""
        return top(self.stack)


@dataclass
class ExecutionResult:
    """The result of running a program to completion."""
    steps: int
    stack: Stack
    repository: dict[str, list[str]] = field(default_factory=dict)

    def summary(self) -> str:
        lines = [
            "Vivid execution",
            f"  Steps: {self.steps}",
            f"  Frames: {len(self.stack)}",
            f"  Labels: {len(self.repository)}",
        ]
        for name, values in self.repository.items():
            lines.append(f"    {name}: {len(values)} values")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"<ExecutionResult: steps={self.steps} labels={list(self.repository)}>"


class Interpreter:
    """Step machine over one program.

    Usage:
        ctx = ExecutionContext(document=doc)
        interpreter = Interpreter(read_program(bytecode), ctx)

        for stack in interpreter:       # one stack per instruction
            print(stack[-1] if stack else [])

        # or
        result = Interpreter(program, ctx).run()

    An interpreter is single-owner and not reentrant.
    """

    def __init__(self, program: Sequence, context: Optional[ExecutionContext] = None) -> None:
        self._program = [
            p if isinstance(p, Instruction) else Instruction(p[0], tuple(p[1]))
            for p in program
        ]
        self._context = context if context is not None else ExecutionContext()
        self._pointer = 0
        self._stack: Stack = []

    @classmethod
    def from_bytecode(cls, bytecode: bytes, context: Optional[ExecutionContext] = None) -> Interpreter:
        return cls(read_program(bytecode), context)

    @classmethod
    def from_layout(cls, script: str, context: Optional[ExecutionContext] = None) -> Interpreter:
        from vivid.compiler import compile_layout
        return cls.from_bytecode(compile_layout(script), context)

    @property
    def program(self) -> list[Instruction]:
        return list(self._program)

    @property
    def context(self) -> ExecutionContext:
        return self._context

    @property
    def stack(self) -> Stack:
        return self._stack

    @property
    def pointer(self) -> int:
        """Index of the next instruction to execute."""
        return self._pointer

    @property
    def done(self) -> bool:
        return self._pointer >= len(self._program)

    def step(self) -> Step:
        """Execute the next instruction.

        Once the program is exhausted, every call reports done and leaves
        the stack as it was.

        Raises:
            InterpreterError: on `layout` or an unknown opcode
        """
        if self.done:
            return Step(done=True, stack=self._stack)

        index = self._pointer
        instruction = self._program[index]
        handler = HANDLERS.get(instruction.opcode)
        if handler is None:
            raise InterpreterError("unknown opcode", index, instruction.opcode)

        try:
            self._stack = handler(self._context, self._stack, *instruction.args)
        except InterpreterError as e:
            if e.index is not None:
                raise
            raise InterpreterError(e.message, index, instruction.opcode) from e

        self._pointer += 1
        logger.debug("step %d %r -> %d values", index, instruction, len(top(self._stack)))
        return Step(done=False, stack=self._stack, instruction=instruction)

    def run(self) -> ExecutionResult:
        """Execute all remaining instructions."""
        start = self._pointer
        while not self.step().done:
            pass
        return ExecutionResult(
            steps=self._pointer - start,
            stack=self._stack,
            repository=self._context.repository.as_dict(),
        )

    def rewind(self) -> None:
        """Back to the first instruction with an empty stack. The repository is kept."""
        self._pointer = 0
        self._stack = []

    def __iter__(self) -> Interpreter:
        return self

    def __next__(self) -> Stack:
        result = self.step()
        if result.done:
            raise StopIteration
        return result.stack

    def __len__(self) -> int:
        return len(self._program)

    def __repr__(self) -> str:
        return f"<Interpreter: {self._pointer}/{len(self._program)} frames={len(self._stack)}>"
