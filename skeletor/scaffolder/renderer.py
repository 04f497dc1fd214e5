r"""Jinja2 rendering for template entries.

Templates use a deliberately small subset of Jinja2:

* ``{{ PluginName }}``: substitute a declared parameter.  The parameter
  must be set; an empty or missing value is an error, never a silent blank.
* ``{{ AuthorEmail | default "security@example.com" }}``: substitute the
  parameter, or the literal when the parameter is empty.  The parenthesized
  Jinja form ``default("...")`` is accepted too.
* ``{{ "{{" }}``: emit a literal, used to escape GitHub Actions
  ``${{ ... }}`` expressions inside parameterized payload.

Only ``{{ }}`` is markup.  Block and comment delimiters are moved to
Unicode noncharacters, so ``{% ... %}``, ``{# ... #}`` and shell text such
as ``${#ARGS[@]}`` pass through untouched.  Line endings (``\r\n``, lone
``\r``) are kept exactly as written.  Attribute access, other filters,
whitespace control (``{{-``, ``-}}``) and undeclared names are rejected with
a :class:`RenderError` before anything is rendered.
"""


from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Any

from jinja2 import Environment, StrictUndefined, TemplateError, TemplateSyntaxError, nodes
from jinja2.ext import Extension
from jinja2.lexer import Token, TokenStream
from jinja2.runtime import Undefined

from .errors import RenderError
from .params import FIELD_NAMES, ParameterSet
from .source import TemplateEntry


# Noncharacters never appear in interchanged text.
BLOCK_START, BLOCK_END = "\ufdd0{%", "%}\ufdd0"
COMMENT_START, COMMENT_END = "\ufdd1{#", "#}\ufdd1"
CARRIAGE_RETURN_MARK = "\ufdd2"

_RESERVED_CHARS = ("\ufdd0", "\ufdd1", CARRIAGE_RETURN_MARK)


# ---------------------------------------------------------------------------
# Jinja2 customisation
# ---------------------------------------------------------------------------


class SubstitutionExtension(Extension):
    """Token-stream rules for the substitution grammar.

    Rewrites ``| default "x"`` into the call form ``| default("x")`` and
    rejects whitespace control on ``{{``/``}}``.
    """

    def filter_stream(self, stream: TokenStream) -> Iterator[Token]:
        previous: Token | None = None
        expecting_literal = False
        for token in stream:
            if token.type in ("variable_begin", "variable_end") and token.value.strip() not in ("{{", "}}"):
                raise TemplateSyntaxError(
                    f"whitespace control '{token.value.strip()}' is not supported",
                    token.lineno,
                    stream.name,
                    stream.filename,
                )
            if expecting_literal and token.type == "string":
                yield Token(token.lineno, "lparen", "(")
                yield token
                yield Token(token.lineno, "rparen", ")")
                expecting_literal = False
                previous = token
                continue
            expecting_literal = (
                token.test("name:default") and previous is not None and previous.type == "pipe"
            )
            yield token
            previous = token


def _default_filter(value: Any, fallback: str = "") -> Any:
    """Return *fallback* when *value* is undefined or empty."""
    if isinstance(value, Undefined) or value is None or value == "":
        return fallback
    return value


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders entry content and entry paths against a :class:`ParameterSet`.

    The renderer holds no per-run state and can be shared between
    concurrent generation runs.
    """

    def __init__(self, fields: Iterable[str] = FIELD_NAMES) -> None:
        self.fields = frozenset(fields)
        self.env = Environment(
            block_start_string=BLOCK_START,
            block_end_string=BLOCK_END,
            comment_start_string=COMMENT_START,
            comment_end_string=COMMENT_END,
            autoescape=False,  # noqa: S701 - output is source code, not HTML
            keep_trailing_newline=True,
            newline_sequence="\n",
            undefined=StrictUndefined,
            extensions=[SubstitutionExtension],
        )
        self.env.filters["default"] = _default_filter

    # -- Entry rendering ---------------------------------------------------

    def render(self, entry: TemplateEntry, params: ParameterSet) -> bytes:
        """Render the content of *entry*.

        Entries without the template marker are returned byte-for-byte.
        """
        if not entry.parameterized:
            return entry.content
        try:
            text = entry.content.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise RenderError(entry.path, f"template content is not valid UTF-8 ({exc.reason})") from exc
        return self.render_string(text, params, origin=entry.path).encode("utf-8")

    def render_path(self, entry: TemplateEntry, params: ParameterSet, path: str | None = None) -> str:
        """Render the tokens embedded in the entry path, if any.

        *path* replaces ``entry.path`` as the text to render, e.g. after
        the template root segment has been removed.
        """
        text = entry.path if path is None else path
        if "{{" not in text:
            return text
        return self.render_string(text, params, origin=entry.path)

    def render_string(self, text: str, params: ParameterSet, origin: str = "<string>") -> str:
        """Render a template string.

        Text outside ``{{ }}`` comes back unchanged, line endings included.

        Args:
            text: Template text.
            params: Validated parameters.
            origin: Entry path used in error messages.

        Raises:
            RenderError: On malformed syntax, an undeclared field or a
                reference that resolves to nothing.
        """
        for char in _RESERVED_CHARS:
            if char in text:
                raise RenderError(origin, f"template contains the reserved character U+{ord(char):04X}")

        # Jinja2 folds every line ending into newline_sequence.
        text = text.replace("\r", CARRIAGE_RETURN_MARK)

        context = params.as_context()
        try:
            tree = self.env.parse(text, name=origin)
        except TemplateSyntaxError as exc:
            raise RenderError(origin, f"malformed template syntax on line {exc.lineno}: {exc.message}") from exc

        self._check_tree(tree, context, origin)

        try:
            rendered = self.env.from_string(tree).render(context)
        except TemplateError as exc:
            raise RenderError(origin, f"rendering failed: {exc}") from exc
        return rendered.replace(CARRIAGE_RETURN_MARK, "\r")

    # -- Grammar checks ----------------------------------------------------

    def _check_tree(self, tree: nodes.Template, context: dict[str, str], origin: str) -> None:
        for node in tree.body:
            if not isinstance(node, nodes.Output):
                raise RenderError(
                    origin,
                    f"unsupported template statement '{type(node).__name__}' on line {node.lineno}",
                )
            for child in node.nodes:
                self._check_expression(child, context, origin)

    def _check_expression(self, node: nodes.Node, context: dict[str, str], origin: str) -> None:
        if isinstance(node, nodes.TemplateData):
            return
        if isinstance(node, nodes.Const) and isinstance(node.value, str):
            return
        if isinstance(node, nodes.Name):
            self._check_field(node, origin)
            if node.name not in context:
                raise RenderError(
                    origin,
                    f"unresolved reference to {node.name} on line {node.lineno} (empty and no default given)",
                    token=node.name,
                )
            return
        if _is_default_filter(node):
            self._check_field(node.node, origin)
            return
        raise RenderError(
            origin,
            f"unsupported template expression '{type(node).__name__}' on line {node.lineno}",
        )

    def _check_field(self, node: nodes.Name, origin: str) -> None:
        if node.name not in self.fields:
            raise RenderError(
                origin,
                f"unknown field {node.name} on line {node.lineno}",
                token=node.name,
            )


def _is_default_filter(node: nodes.Node) -> bool:
    return (
        isinstance(node, nodes.Filter)
        and node.name == "default"
        and isinstance(node.node, nodes.Name)
        and len(node.args) == 1
        and isinstance(node.args[0], nodes.Const)
        and isinstance(node.args[0].value, str)
        and not node.kwargs
        and node.dyn_args is None
        and node.dyn_kwargs is None
    )
