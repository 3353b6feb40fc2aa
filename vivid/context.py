"""
Vivid Execution Context

Everything an interpreter run touches besides its own memory stack:

- DocumentQuery: the injected capability that answers XPath, CSS selector
  and computed-style questions about one document
- Repository: label → values store populated by the `label` directive
- ExecutionContext: bundles the above with the prompt command table and the
  query scope (bundle) shared by consecutive html directives

A context outlives interpreter runs. Hosts call reset() between independent
runs; sharing one context between concurrent runs needs external locking
(one lock around a whole run is enough, `label` only ever appends).
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterator, Mapping, Optional, Sequence

logger = logging.getLogger(__name__)


# ============================================================================
# Document capability
# ============================================================================

class XPathResultType(Enum):
    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"
    NODE = "node"
    NODESET = "nodeset"


@dataclass(frozen=True)
class XPathResult:
    """A typed XPath result.

    value is a float, str, bool, a single node (or None), or a sequence of
    nodes depending on type.
    """
    type: XPathResultType
    value: Any

    @property
    def nodes(self) -> list:
        if self.type is XPathResultType.NODESET:
            return list(self.value)
        if self.type is XPathResultType.NODE and self.value is not None:
            return [self.value]
        return []


class DocumentQuery(ABC):
    """Query surface over a document, injected into the interpreter.

    Nodes are opaque to vivid: they are only handed back to the same
    DocumentQuery as context nodes or for text and style lookups.
    """

    @abstractmethod
    def evaluate(self, xpath: str, context: Any = None) -> XPathResult:
        """Evaluate an XPath expression, relative to context if given."""
        ...

    @abstractmethod
    def query_selector_all(self, selector: str, context: Any = None) -> list:
        """All elements matching a CSS selector, in document order."""
        ...

    def query_selector(self, selector: str, context: Any = None) -> Optional[Any]:
        matches = self.query_selector_all(selector, context)
        return matches[0] if matches else None

    @abstractmethod
    def computed_style(self, node: Any, prop: str) -> str:
        ...

    @abstractmethod
    def text_content(self, node: Any) -> str:
        ...


class NullDocument(DocumentQuery):
    """Stand-in used until a real document is set up."""

    def evaluate(self, xpath: str, context: Any = None) -> XPathResult:
        return XPathResult(XPathResultType.NODESET, [])

    def query_selector_all(self, selector: str, context: Any = None) -> list:
        return []

    def computed_style(self, node: Any, prop: str) -> str:
        return "not supported"

    def text_content(self, node: Any) -> str:
        return ""

    def __repr__(self) -> str:
        return "<NullDocument>"


# ============================================================================
# Repository
# ============================================================================

class Repository:
    """Labeled collections of extracted strings.

    A label is created on first use and only ever appended to.
    """

    def __init__(self) -> None:
        self._store: dict[str, list[str]] = {}

    def append(self, name: str, values: Sequence[str]) -> None:
        self._store.setdefault(name, []).extend(values)

    def get(self, name: str, default: Optional[list[str]] = None) -> Optional[list[str]]:
        return self._store.get(name, default)

    def labels(self) -> list[str]:
        return list(self._store)

    def as_dict(self) -> dict[str, list[str]]:
        return {name: list(values) for name, values in self._store.items()}

    def clear(self) -> None:
        self._store.clear()

    def __getitem__(self, name: str) -> list[str]:
        return self._store[name]

    def __contains__(self, name: object) -> bool:
        return name in self._store

    def __iter__(self) -> Iterator[str]:
        return iter(self._store)

    def __len__(self) -> int:
        return len(self._store)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Repository):
            return self._store == other._store
        if isinstance(other, Mapping):
            return self._store == dict(other)
        return NotImplemented

    def __repr__(self) -> str:
        sizes = ", ".join(f"{name}={len(values)}" for name, values in self._store.items())
        return f"<Repository: {sizes or 'empty'}>"


# ============================================================================
# Execution context
# ============================================================================

Command = Callable[..., Any]


class ExecutionContext:
    """Shared state for interpreter runs.

    Usage:
        ctx = ExecutionContext(document=HtmlDocument.from_file("page.html"))
        ctx.register("debug", lambda frame, *args: print(frame))

        Interpreter(program, ctx).run()
        print(ctx.repository["links"])

        ctx.reset()  # before the next independent run
    """

    def __init__(
        self,
        document: Optional[DocumentQuery] = None,
        repository: Optional[Repository] = None,
        commands: Optional[Mapping[str, Command]] = None,
    ) -> None:
        self.document: DocumentQuery = document or NullDocument()
        self.repository = repository if repository is not None else Repository()
        self.commands: dict[str, Command] = dict(commands or {})
        # None means global mode; a list scopes follow/select per element
        self.bundle: Optional[list] = None
        # nodes touched by the last follow/select/bundle, read by style
        self.visited_nodes: list = []

    def setup(self, document: DocumentQuery) -> None:
        """Inject a new document. Scope and visited nodes refer to the old one, so they go."""
        self.document = document
        self.bundle = None
        self.visited_nodes = []

    def register(self, name: str, command: Command) -> None:
        """Make `command` callable from layouts as `prompt <name> ...`.

        The command receives a copy of the top frame followed by the extra
        prompt arguments.
        """
        self.commands[name] = command

    def configure(self, commands: Mapping[str, Command]) -> None:
        for name, command in commands.items():
            self.register(name, command)

    def reset(self) -> None:
        """Drop everything collected so far; commands and document stay."""
        self.repository.clear()
        self.bundle = None
        self.visited_nodes = []
        logger.debug("execution context reset")

    @property
    def scoped(self) -> bool:
        return self.bundle is not None

    def __repr__(self) -> str:
        scope = f"bundle={len(self.bundle)}" if self.bundle is not None else "global"
        return (
            f"<ExecutionContext: {self.document!r} {scope} "
            f"commands={sorted(self.commands)} {self.repository!r}>"
        )
