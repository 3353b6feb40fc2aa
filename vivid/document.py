"""
Vivid HTML Document (lxml)

DocumentQuery implementation for static HTML. XPath goes straight to lxml,
CSS selectors through cssselect.

Computed styles are approximated with a minimal cascade: declarations from
<style> blocks whose selectors match the element, in source order, then the
inline style attribute. There is no specificity, inheritance or value
normalization ("green" stays "green").
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Optional, Union

from cssselect import SelectorError
from lxml import etree
from lxml import html as lxml_html
from lxml.cssselect import CSSSelector

from vivid.context import DocumentQuery, XPathResult, XPathResultType
from vivid.errors import InterpreterError

logger = logging.getLogger(__name__)


EMPTY_DOCUMENT = "<html><body></body></html>"

CSS_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)
CSS_RULE = re.compile(r"([^{}]+)\{([^{}]*)\}")


def parse_declarations(text: str) -> dict[str, str]:
    """`color: red; margin: 0` → {"color": "red", "margin": "0"}"""
    declarations = {}
    for chunk in text.split(";"):
        prop, sep, value = chunk.partition(":")
        if not sep or not prop.strip():
            continue
        value = value.replace("!important", "").strip()
        declarations[prop.strip().lower()] = value
    return declarations


def parse_stylesheet(text: str) -> list[tuple[str, dict[str, str]]]:
    """Flat (selector, declarations) rules in source order."""
    rules = []
    for match in CSS_RULE.finditer(CSS_COMMENT.sub("", text)):
        selectors, body = match.group(1).strip(), match.group(2)
        if selectors.startswith("@"):
            continue
        declarations = parse_declarations(body)
        for selector in selectors.split(","):
            if selector.strip():
                rules.append((selector.strip(), declarations))
    return rules


class HtmlDocument(DocumentQuery):
    """An HTML page parsed with lxml.

    Usage:
        doc = HtmlDocument.from_file("page.html")
        ctx = ExecutionContext(document=doc)
    """

    def __init__(self, root: etree._Element) -> None:
        self._root = root
        bodies = root.xpath("//body")
        self._body = bodies[0] if bodies else root
        self._rules: Optional[list[tuple[str, dict[str, str]]]] = None
        self._matches: dict[str, set] = {}

    @classmethod
    def from_string(cls, source: Union[str, bytes]) -> HtmlDocument:
        if not source or not source.strip():
            source = EMPTY_DOCUMENT
        return cls(lxml_html.document_fromstring(source))

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> HtmlDocument:
        return cls.from_string(Path(path).read_text(encoding="utf-8"))

    @property
    def root(self) -> etree._Element:
        return self._root

    @property
    def body(self) -> etree._Element:
        return self._body

    # --- XPath ---

    def evaluate(self, xpath: str, context: Any = None) -> XPathResult:
        node = self._body if context is None else context
        if not isinstance(node, etree._Element):
            return XPathResult(XPathResultType.NODESET, [])

        try:
            result = node.xpath(xpath)
        except etree.XPathError as e:
            raise InterpreterError(f"bad XPath expression {xpath!r}: {e}") from e

        if isinstance(result, list):
            return XPathResult(XPathResultType.NODESET, result)
        if isinstance(result, bool):
            return XPathResult(XPathResultType.BOOLEAN, result)
        if isinstance(result, float):
            return XPathResult(XPathResultType.NUMBER, result)
        return XPathResult(XPathResultType.STRING, str(result))

    # --- CSS selectors ---

    def _selector(self, selector: str) -> CSSSelector:
        try:
            return CSSSelector(selector, translator="html")
        except SelectorError as e:
            raise InterpreterError(f"bad CSS selector {selector!r}: {e}") from e

    def query_selector_all(self, selector: str, context: Any = None) -> list:
        if context is None:
            return self._selector(selector)(self._root)
        if not isinstance(context, etree._Element):
            return []
        # descendants only, like the DOM's element.querySelectorAll
        return [el for el in self._selector(selector)(context) if el is not context]

    # --- text and style ---

    def text_content(self, node: Any) -> str:
        if node is None:
            return ""
        if isinstance(node, str):
            return str(node)
        if isinstance(node, (etree._Comment, etree._ProcessingInstruction)):
            return node.text or ""
        return "".join(node.itertext())

    def _stylesheet(self) -> list[tuple[str, dict[str, str]]]:
        if self._rules is None:
            self._rules = []
            for element in self._root.iter("style"):
                self._rules.extend(parse_stylesheet(element.text or ""))
            logger.debug("stylesheet: %d rules", len(self._rules))
        return self._rules

    def _matched_by(self, selector: str) -> set:
        if selector not in self._matches:
            try:
                matched = CSSSelector(selector, translator="html")(self._root)
            except SelectorError:
                # unsupported selectors are ignored, as browsers do
                matched = []
            self._matches[selector] = set(matched)
        return self._matches[selector]

    def computed_style(self, node: Any, prop: str) -> str:
        if not isinstance(node, etree._Element) or isinstance(node, etree._Comment):
            return "not an element"

        prop = prop.strip().lower()
        value = ""
        for selector, declarations in self._stylesheet():
            if prop in declarations and node in self._matched_by(selector):
                value = declarations[prop]

        inline = parse_declarations(node.get("style") or "")
        return inline.get(prop, value)

    def __repr__(self) -> str:
        return f"<HtmlDocument: <{self._root.tag}> {len(self._stylesheet())} css rules>"
