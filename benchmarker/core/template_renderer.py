"""Mustache-style template rendering on top of Jinja2.

Supported tags: ``{{name}}``, ``{{{name}}}``, ``{{&name}}``, ``{{.}}``,
dotted names, ``{{#section}}``, ``{{^inverted}}``, ``{{/section}}`` and
``{{! comments}}``. Values are never HTML-escaped and unresolved names
render as an empty string.

Templates are compiled into Jinja2 source where every literal chunk is
emitted through a variable, so Jinja syntax inside a Dockerfile or a shell
command is never interpreted.
"""
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any, List, Tuple

from jinja2 import Environment, StrictUndefined

from benchmarker.core.errors import TemplateNotFound, TemplateSyntaxError

TAG_RE = re.compile(
    r"\{\{\{\s*(?P<triple>.+?)\s*\}\}\}"
    r"|\{\{\s*(?P<sigil>[#^/&!]?)\s*(?P<name>.*?)\s*\}\}",
    re.DOTALL,
)

# Tags that disappear together with their line when alone on it
STANDALONE_SIGILS = {"#", "^", "/", "!"}

_MISSING = object()


def _resolve(stack: Tuple[Any, ...], name: str) -> Any:
    if name == ".":
        return stack[-1]

    head, *rest = name.split(".")
    value = _MISSING
    for frame in reversed(stack):
        if isinstance(frame, Mapping) and head in frame:
            value = frame[head]
            break
    if value is _MISSING:
        return None

    for part in rest:
        if not isinstance(value, Mapping) or part not in value:
            return None
        value = value[part]
    return value


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _lookup(stack: Tuple[Any, ...], name: str) -> str:
    return _stringify(_resolve(stack, name))


def _section(stack: Tuple[Any, ...], name: str) -> List[Tuple[Any, ...]]:
    """Return one context stack per rendering of the section body."""
    value = _resolve(stack, name)
    if isinstance(value, (list, tuple)):
        return [stack + (item,) for item in value]
    if not value:
        return []
    return [stack + (value,)]


def _is_standalone(template: str, start: int, end: int) -> Tuple[bool, int, int]:
    line_start = template.rfind("\n", 0, start) + 1
    line_end = template.find("\n", end)
    next_pos = len(template) if line_end == -1 else line_end + 1
    if line_end == -1:
        line_end = len(template)
    standalone = (
        not template[line_start:start].strip()
        and not template[end:line_end].strip()
    )
    return standalone, line_start, next_pos


class TemplateRenderer:
    """Renders mustache-style templates against a nested context."""

    def __init__(self):
        self.env = Environment(autoescape=False, undefined=StrictUndefined)
        self.env.globals.update(_lookup=_lookup, _section=_section)

    def compile(self, template: str) -> Tuple[str, List[str]]:
        """Translate a mustache template into Jinja2 source and its literal chunks."""
        literals: List[str] = []
        parts: List[str] = []
        open_sections: List[Tuple[str, str]] = []
        depth = 0
        pos = 0

        def emit_text(text: str) -> None:
            if text:
                literals.append(text)
                parts.append(f"{{{{ _t[{len(literals) - 1}] }}}}")

        for match in TAG_RE.finditer(template):
            triple = match.group("triple")
            sigil = "" if triple is not None else match.group("sigil")
            name = triple if triple is not None else match.group("name")

            text_end, next_pos = match.start(), match.end()
            if sigil in STANDALONE_SIGILS:
                standalone, line_start, after_line = _is_standalone(
                    template, match.start(), match.end()
                )
                if standalone and line_start >= pos:
                    text_end, next_pos = line_start, after_line

            emit_text(template[pos:text_end])
            pos = next_pos

            if sigil == "!":
                continue
            if sigil == "#":
                parts.append(f"{{% for _s{depth + 1} in _section(_s{depth}, {name!r}) %}}")
                open_sections.append(("#", name))
                depth += 1
            elif sigil == "^":
                parts.append(f"{{% if not _section(_s{depth}, {name!r}) %}}")
                open_sections.append(("^", name))
            elif sigil == "/":
                if not open_sections or open_sections[-1][1] != name:
                    raise TemplateSyntaxError(f"Unexpected closing tag '{{{{/{name}}}}}'")
                kind, _ = open_sections.pop()
                if kind == "#":
                    parts.append("{% endfor %}")
                    depth -= 1
                else:
                    parts.append("{% endif %}")
            else:
                parts.append(f"{{{{ _lookup(_s{depth}, {name!r}) }}}}")

        if open_sections:
            raise TemplateSyntaxError(f"Unclosed section '{{{{#{open_sections[-1][1]}}}}}'")

        emit_text(template[pos:])
        return "".join(parts), literals

    def render(self, template: str, context: Mapping) -> str:
        """Render ``template`` against ``context``."""
        source, literals = self.compile(template)
        compiled = self.env.from_string(source)
        return compiled.render(_t=literals, _s0=(context,))

    def render_file(self, path: Path, context: Mapping) -> str:
        """Render the template stored at ``path``.

        Raises:
            TemplateNotFound: If the template file does not exist
        """
        path = Path(path)
        if not path.is_file():
            raise TemplateNotFound(path)
        return self.render(path.read_text(), context)


_default_renderer = TemplateRenderer()


def render(template: str, context: Mapping) -> str:
    """Render a template string with the shared renderer."""
    return _default_renderer.render(template, context)
