"""A small command-template language.

Templates follow the Go ``text/template`` action syntax that pipeline users
already write in ``runOptions``::

    --reporter-junit TEST-{{.CollectionDisplayName}}.xml
    --env-var key={{getenv "API_KEY"}}
    --env {{ .Config.BrunoEnvironment }}

Supported are field chains on the context, quoted string literals, the
registered functions, ``|`` pipelines, ``{{- -}}`` whitespace trimming and
``{{/* comments */}}``.  Parsing and execution fail with distinct exceptions.

Control actions (``if``, ``range``, ``with``, ``define``, ``end`` ...) are not
part of this language; they fail to parse like any undefined function.
"""

import inspect
import json
import os
import re
from dataclasses import dataclass, field
from typing import Any, Callable, NamedTuple, Optional, Union

from .config import StepConfig


class TemplateError(Exception):
    """Base class for template errors."""


class TemplateSyntaxError(TemplateError):
    """Raised when a template cannot be parsed."""


class TemplateExecutionError(TemplateError):
    """Raised when a parsed template cannot be rendered."""


@dataclass(frozen=True)
class TemplateContext:
    """Values visible to a command template."""

    collection_display_name: str
    bruno_collection: str
    config: StepConfig
    getenv: Callable[[str], str] = field(default=lambda key: os.environ.get(key, ""))

    def lookup(self, name: str) -> Any:
        if name == "CollectionDisplayName":
            return self.collection_display_name
        if name == "BrunoCollection":
            return self.bruno_collection
        if name == "Config":
            return self.config
        raise KeyError(name)


FUNCTIONS: dict[str, Callable[..., Any]] = {
    "getenv": lambda context, name: context.getenv(name) or "",
}

_ACTION_RE = re.compile(r"""((?:"(?:[^"\\\n]|\\.)*"|`[^`]*`|[^"`}]|\}(?!\}))*)\}\}""", re.DOTALL)

_TOKEN_RE = re.compile(
    r"""
      (?P<string>"(?:[^"\\\n]|\\.)*")
    | (?P<raw>`[^`]*`)
    | (?P<field>(?:\.[A-Za-z_][A-Za-z0-9_]*)+|\.)
    | (?P<ident>[A-Za-z_][A-Za-z0-9_]*)
    | (?P<pipe>\|)
    """,
    re.VERBOSE,
)


class Operand(NamedTuple):
    kind: str  # "string", "field" or "func"
    value: Any
    text: str


Command = list[Operand]


class Action(NamedTuple):
    pipeline: list[Command]
    line: int


Node = Union[str, Action]

_MISSING = object()


def _line_of(source: str, offset: int) -> int:
    return source.count("\n", 0, offset) + 1


class Template:
    """A parsed command template."""

    def __init__(self, source: str, name: str = "template") -> None:
        self.source = source
        self.name = name
        self.nodes: list[Node] = self._parse(source)

    def _error(self, line: int, message: str) -> str:
        return f"template: {self.name}:{line}: {message}"

    def _parse(self, source: str) -> list[Node]:
        nodes: list[Node] = []
        pos = 0
        trim_next = False
        while True:
            start = source.find("{{", pos)
            text = source[pos:] if start < 0 else source[pos:start]
            if trim_next:
                text = text.lstrip()
                trim_next = False
            if start < 0:
                if text:
                    nodes.append(text)
                return nodes

            line = _line_of(source, start)
            match = _ACTION_RE.match(source, start + 2)
            if match is None:
                raise TemplateSyntaxError(self._error(line, "unclosed action"))
            body = match.group(1)
            pos = match.end()

            if body.startswith("-") and (len(body) == 1 or body[1].isspace()):
                text = text.rstrip()
                body = body[1:]
            if body.endswith("-") and len(body) > 1 and body[-2].isspace():
                trim_next = True
                body = body[:-1]
            if text:
                nodes.append(text)

            body = body.strip()
            if body.startswith("/*"):
                if not body.endswith("*/"):
                    raise TemplateSyntaxError(self._error(line, "unclosed comment"))
                continue
            nodes.append(Action(self._parse_pipeline(body, line), line))

    def _parse_pipeline(self, body: str, line: int) -> list[Command]:
        if not body:
            raise TemplateSyntaxError(self._error(line, "missing value for command"))

        pipeline: list[Command] = [[]]
        pos = 0
        while pos < len(body):
            if body[pos].isspace():
                pos += 1
                continue
            match = _TOKEN_RE.match(body, pos)
            if match is None:
                raise TemplateSyntaxError(self._error(line, f"unexpected {body[pos]!r} in command"))
            pos = match.end()

            kind, text = match.lastgroup, match.group()
            if kind == "pipe":
                if not pipeline[-1]:
                    raise TemplateSyntaxError(self._error(line, "missing command before '|'"))
                pipeline.append([])
            elif kind == "string":
                try:
                    value = json.loads(text)
                except ValueError:
                    raise TemplateSyntaxError(self._error(line, f"invalid quoted string {text}")) from None
                pipeline[-1].append(Operand("string", value, text))
            elif kind == "raw":
                pipeline[-1].append(Operand("string", text[1:-1], text))
            elif kind == "field":
                names = tuple(name for name in text.split(".") if name)
                pipeline[-1].append(Operand("field", names, text))
            else:
                if text not in FUNCTIONS:
                    raise TemplateSyntaxError(self._error(line, f'function "{text}" not defined'))
                pipeline[-1].append(Operand("func", text, text))

        if not pipeline[-1]:
            raise TemplateSyntaxError(self._error(line, "missing command after '|'"))
        return pipeline

    def render(self, context: TemplateContext) -> str:
        parts: list[str] = []
        for node in self.nodes:
            if isinstance(node, str):
                parts.append(node)
                continue
            value: Any = _MISSING
            for command in node.pipeline:
                value = self._eval_command(command, value, context, node.line)
            parts.append(self._stringify(value, node.line))
        return "".join(parts)

    def _eval_command(self, command: Command, piped: Any, context: TemplateContext, line: int) -> Any:
        first, rest = command[0], command[1:]
        if first.kind == "func":
            args = [self._eval_operand(op, context, line) for op in rest]
            if piped is not _MISSING:
                args.append(piped)
            return self._call(first.value, args, context, line)
        if rest or piped is not _MISSING:
            raise TemplateExecutionError(self._error(line, f"can't give argument to non-function {first.text}"))
        return self._eval_operand(first, context, line)

    def _eval_operand(self, operand: Operand, context: TemplateContext, line: int) -> Any:
        if operand.kind == "string":
            return operand.value
        if operand.kind == "func":
            return self._call(operand.value, [], context, line)

        value: Any = context
        for name in operand.value:
            try:
                if isinstance(value, (TemplateContext, StepConfig)):
                    value = value.lookup(name)
                else:
                    raise KeyError(name)
            except KeyError:
                type_name = type(value).__name__
                raise TemplateExecutionError(
                    self._error(line, f"can't evaluate field {name} in type {type_name}")
                ) from None
        return value

    def _call(self, name: str, args: list[Any], context: TemplateContext, line: int) -> Any:
        func = FUNCTIONS[name]
        try:
            inspect.signature(func).bind(context, *args)
        except TypeError:
            raise TemplateExecutionError(
                self._error(line, f"wrong number of args for {name}: got {len(args)}")
            ) from None
        for arg in args:
            if not isinstance(arg, str):
                raise TemplateExecutionError(
                    self._error(line, f"wrong type for value; expected string; got {type(arg).__name__}")
                )
        return func(context, *args)

    def _stringify(self, value: Any, line: int) -> str:
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (str, int)):
            return str(value)
        if isinstance(value, (list, tuple)):
            return "[" + " ".join(self._stringify(item, line) for item in value) + "]"
        raise TemplateExecutionError(self._error(line, f"can't print value of type {type(value).__name__}"))


def render(source: str, context: TemplateContext, name: Optional[str] = None) -> str:
    return Template(source, name or "template").render(context)
