"""Plain-text rendering of card nodes for terminals and API clients."""

import re
from collections.abc import Mapping, Sequence
from typing import Any

from reprise.domain.constants import CLOZE_PLACEHOLDER
from reprise.domain.models import Node

# {{cloze some text}} or {{cloze: some text}}
CLOZE_RE = re.compile(r"\{\{\s*cloze\s*:?\s*(.*?)\s*\}\}", re.DOTALL | re.IGNORECASE)


def render_cloze(text: str, masked: bool) -> str:
    """Replace cloze spans with a placeholder when masked, else with `[content]`."""

    def replace(m: re.Match) -> str:
        if masked:
            return CLOZE_PLACEHOLDER
        return f"[{m.group(1)}]"

    return CLOZE_RE.sub(replace, text)


def render_node(node: Node, config: Mapping[str, Any] | None = None) -> str:
    config = config or {}
    text = render_cloze(node.content, masked=bool(config.get("cloze")))
    indent = "  " * node.depth
    lines = text.split("\n") or [""]
    first, rest = lines[0], lines[1:]
    out = [f"{indent}- {first}"]
    out.extend(f"{indent}  {line}" for line in rest)
    return "\n".join(out)


def render_nodes(nodes: Sequence[Node], config: Mapping[str, Any] | None = None) -> str:
    """Render nodes as an indented outline, honoring the phase's rendering hints."""
    return "\n".join(render_node(node, config) for node in nodes)
