"""Prompt template language: placeholders and flag-conditional blocks.

Templates are parsed into a small tagged AST and evaluated against an
explicit :class:`TemplateFlags` record::

    {{#if hasPersonalNotes}}Notes:
    {personalNotes}{{/if}}
    {{#unless hasTranscript}}No transcript was recorded.{{/unless}}
    {transcript}

Substituted values are inserted verbatim; they are never re-parsed, so a
transcript containing template syntax renders literally.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Union

from src.errors import TemplateSyntaxError

FLAG_NAMES = ("hasTranscript", "hasPersonalNotes")
PLACEHOLDER_NAMES = ("transcript", "personalNotes")

_TOKEN_RE = re.compile(
    r"\{\{#(?P<open>if|unless)\s+(?P<flag>\w+)\}\}"
    r"|\{\{/(?P<close>if|unless)\}\}"
    r"|\{(?P<placeholder>\w+)\}"
)


@dataclass(frozen=True)
class Text:
    value: str


@dataclass(frozen=True)
class Placeholder:
    name: str


@dataclass(frozen=True)
class Conditional:
    """``{{#if flag}}`` block, or ``{{#unless flag}}`` when ``negate`` is set."""

    flag: str
    negate: bool
    body: tuple[Node, ...]


Node = Union[Text, Placeholder, Conditional]


@dataclass(frozen=True)
class TemplateFlags:
    """Boolean inputs a template's conditional blocks may test."""

    has_transcript: bool
    has_personal_notes: bool

    def get(self, flag: str) -> bool:
        return {
            "hasTranscript": self.has_transcript,
            "hasPersonalNotes": self.has_personal_notes,
        }[flag]


def _parse(template: str) -> tuple[tuple[Node, ...], list[str]]:
    """Parse *template* into nodes, collecting every syntax problem found."""
    errors: list[str] = []
    # Each frame: (kind, flag, negate, children)
    stack: list[tuple[str, str, bool, list[Node]]] = [("root", "", False, [])]
    pos = 0

    for match in _TOKEN_RE.finditer(template):
        if match.start() > pos:
            stack[-1][3].append(Text(template[pos : match.start()]))
        pos = match.end()

        if match.group("open"):
            kind, flag = match.group("open"), match.group("flag")
            if flag not in FLAG_NAMES:
                errors.append(
                    f"Unknown conditional: {flag}. Valid conditionals are: {', '.join(FLAG_NAMES)}"
                )
            stack.append((kind, flag, kind == "unless", []))
        elif match.group("close"):
            kind = match.group("close")
            if len(stack) == 1:
                errors.append(f"Unexpected {{{{/{kind}}}}} without an opening block")
                continue
            open_kind, flag, negate, children = stack.pop()
            if open_kind != kind:
                errors.append(f"Mismatched blocks: {{{{#{open_kind}}}}} closed by {{{{/{kind}}}}}")
            stack[-1][3].append(Conditional(flag=flag, negate=negate, body=tuple(children)))
        else:
            name = match.group("placeholder")
            if name not in PLACEHOLDER_NAMES:
                errors.append(
                    f"Unknown placeholder: {{{name}}}. Valid placeholders are: "
                    + ", ".join(f"{{{p}}}" for p in PLACEHOLDER_NAMES)
                )
            stack[-1][3].append(Placeholder(name))

    if pos < len(template):
        stack[-1][3].append(Text(template[pos:]))

    while len(stack) > 1:
        open_kind, flag, _, _ = stack.pop()
        errors.append(f"Unclosed {{{{#{open_kind} {flag}}}}} block")

    return tuple(stack[0][3]), errors


def parse_template(template: str) -> tuple[Node, ...]:
    """Parse *template* into its AST.

    Raises:
        TemplateSyntaxError: On unbalanced blocks or unknown flags/placeholders.
    """
    nodes, errors = _parse(template)
    if errors:
        raise TemplateSyntaxError(errors)
    return nodes


def validate_template_syntax(template: str) -> list[str]:
    """Return every syntax problem in *template*; empty when valid."""
    return _parse(template)[1]


def _evaluate(nodes: tuple[Node, ...], flags: TemplateFlags, values: dict[str, str]) -> str:
    parts: list[str] = []
    for node in nodes:
        if isinstance(node, Text):
            parts.append(node.value)
        elif isinstance(node, Placeholder):
            parts.append(values[node.name])
        elif flags.get(node.flag) != node.negate:
            parts.append(_evaluate(node.body, flags, values))
    return "".join(parts)


def render_template(template: str, transcript: str, personal_notes: str) -> str:
    """Substitute *transcript* and *personal_notes* into *template*.

    ``hasTranscript``/``hasPersonalNotes`` are true when the corresponding
    value is non-blank.
    """
    flags = TemplateFlags(
        has_transcript=bool(transcript.strip()),
        has_personal_notes=bool(personal_notes.strip()),
    )
    values = {"transcript": transcript, "personalNotes": personal_notes}
    return _evaluate(parse_template(template), flags, values)
