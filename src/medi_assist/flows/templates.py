"""
Prompt template rendering.

Handlebars-style templates compiled once (at flow definition) and rendered as a
pure function of the input value:

    {{path}} / {{{path}}}              field placeholder (dotted paths, no escaping)
    {{#each path}}...{{/each}}         one expansion per list element; inside the
                                       block names resolve against the element,
                                       with this, @index, @first, @last and ../
    {{#if path}}...{{else}}...{{/if}}  included only when the guard is truthy
    {{#unless path}}...{{/unless}}     included only when the guard is falsy
    {{! comment }}                     dropped

Iterating over an absent or empty list renders nothing (or the {{else}} branch).
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Union

from pydantic import BaseModel

from medi_assist.flows.errors import ConfigurationError

_TAG_RE = re.compile(r"\{\{\{\s*(.*?)\s*\}\}\}|\{\{\s*(.*?)\s*\}\}", re.DOTALL)
_BLOCK_HELPERS = ("each", "if", "unless")

_MISSING = object()


class TemplateSyntaxError(ConfigurationError):
    """Malformed template; raised at compile time."""


# -----------------------------------------------------------------------------
# AST
# -----------------------------------------------------------------------------


@dataclass
class _Text:
    text: str


@dataclass
class _Var:
    path: str


@dataclass
class _Block:
    helper: str
    path: str
    body: List[Any] = field(default_factory=list)
    inverse: List[Any] = field(default_factory=list)


Node = Union[_Text, _Var, _Block]


def _parse(source: str) -> List[Node]:
    root: List[Node] = []
    stack: List[tuple] = []  # (block, in_inverse)
    current = root
    pos = 0
    for match in _TAG_RE.finditer(source):
        if match.start() > pos:
            current.append(_Text(source[pos : match.start()]))
        pos = match.end()
        tag = (match.group(1) if match.group(1) is not None else match.group(2)).strip()
        if not tag:
            raise TemplateSyntaxError(f"Empty tag at offset {match.start()}")
        if tag.startswith("!"):
            continue
        if tag.startswith("#"):
            parts = tag[1:].split(None, 1)
            helper = parts[0]
            if helper not in _BLOCK_HELPERS:
                raise TemplateSyntaxError(f"Unsupported block helper '#{helper}'")
            if len(parts) < 2:
                raise TemplateSyntaxError(f"Block '#{helper}' needs a field path")
            block = _Block(helper=helper, path=parts[1].strip())
            current.append(block)
            stack.append((block, False))
            current = block.body
        elif tag == "else":
            if not stack or stack[-1][1]:
                raise TemplateSyntaxError("'{{else}}' outside of a block")
            block, _ = stack.pop()
            stack.append((block, True))
            current = block.inverse
        elif tag.startswith("/"):
            helper = tag[1:].strip()
            if not stack:
                raise TemplateSyntaxError(f"Closing '{{{{/{helper}}}}}' without an open block")
            block, _ = stack.pop()
            if block.helper != helper:
                raise TemplateSyntaxError(
                    f"Closing '{{{{/{helper}}}}}' does not match open '{{{{#{block.helper}}}}}'"
                )
            if stack:
                parent, in_inverse = stack[-1]
                current = parent.inverse if in_inverse else parent.body
            else:
                current = root
        else:
            current.append(_Var(tag))
    if stack:
        raise TemplateSyntaxError(f"Unclosed block '{{{{#{stack[-1][0].helper}}}}}'")
    if pos < len(source):
        current.append(_Text(source[pos:]))
    return root


# -----------------------------------------------------------------------------
# Rendering
# -----------------------------------------------------------------------------


@dataclass
class _Scope:
    value: Any
    parent: Optional["_Scope"] = None
    index: Optional[int] = None
    length: Optional[int] = None


def _get(value: Any, key: str) -> Any:
    if isinstance(value, Mapping):
        return value.get(key, _MISSING)
    if isinstance(value, (list, tuple)) and key.isdigit():
        i = int(key)
        return value[i] if i < len(value) else _MISSING
    return _MISSING


def _resolve(scope: _Scope, path: str) -> Any:
    while path.startswith("../"):
        path = path[3:]
        scope = scope.parent or scope
    if path.startswith("@"):
        if scope.index is None:
            return None
        if path == "@index":
            return scope.index
        if path == "@first":
            return scope.index == 0
        if path == "@last":
            return scope.length is not None and scope.index == scope.length - 1
        return None
    if path in ("this", "."):
        return scope.value
    if path.startswith("this."):
        path = path[5:]
    value = scope.value
    for key in path.split("."):
        value = _get(value, key)
        if value is _MISSING:
            return None
    return value


def to_text(value: Any) -> str:
    """Natural textual form of a field value (no locale formatting)."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(to_text(v) for v in value)
    if isinstance(value, Mapping):
        return json.dumps(value, default=str)
    if isinstance(value, BaseModel):
        return value.model_dump_json(by_alias=True)
    return str(value)


def _render_nodes(nodes: List[Node], scope: _Scope, out: List[str]) -> None:
    for node in nodes:
        if isinstance(node, _Text):
            out.append(node.text)
        elif isinstance(node, _Var):
            out.append(to_text(_resolve(scope, node.path)))
        elif node.helper == "if":
            _render_nodes(node.body if _resolve(scope, node.path) else node.inverse, scope, out)
        elif node.helper == "unless":
            _render_nodes(node.inverse if _resolve(scope, node.path) else node.body, scope, out)
        else:
            items = _resolve(scope, node.path)
            if isinstance(items, Mapping):
                items = list(items.values())
            if not items or not isinstance(items, (list, tuple)):
                _render_nodes(node.inverse, scope, out)
                continue
            for i, item in enumerate(items):
                _render_nodes(node.body, _Scope(item, parent=scope, index=i, length=len(items)), out)


def _as_data(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump(by_alias=True)
    return data


class PromptTemplate:
    """A compiled prompt template. Compilation errors surface at definition time."""

    def __init__(self, source: str) -> None:
        self.source = source
        self._nodes = _parse(source)

    def render(self, data: Any) -> str:
        out: List[str] = []
        _render_nodes(self._nodes, _Scope(_as_data(data)), out)
        return "".join(out)

    def __repr__(self) -> str:
        preview = self.source[:40].replace("\n", " ")
        return f"PromptTemplate({preview!r}...)"


def render(template: Union[str, PromptTemplate], data: Any) -> str:
    """Render template with data. Pure: no I/O."""
    if not isinstance(template, PromptTemplate):
        template = PromptTemplate(template)
    return template.render(data)
