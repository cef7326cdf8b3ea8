from typing import Any

import yaml  # type: ignore
import yaml.constructor

from .yaml import _LiteralDumper

FRONTMATTER_FENCE = "---"

# ---------- Frontmatter helpers ----------


class UniqueKeyLoader(yaml.SafeLoader):
    """SafeLoader that rejects duplicate mapping keys and keeps timestamps as text."""

    def construct_mapping(self, node, deep=False):
        seen = set()
        for key_node, _ in node.value:
            key = self.construct_object(key_node, deep=deep)
            if key in seen:
                raise yaml.constructor.ConstructorError(
                    None, None, f"found duplicate key '{key}'", key_node.start_mark
                )
            seen.add(key)
        return super().construct_mapping(node, deep)


# Timestamps stay plain strings; the core parses them itself.
UniqueKeyLoader.add_constructor(
    "tag:yaml.org,2002:timestamp", yaml.SafeLoader.construct_yaml_str
)


def _split_frontmatter(md_text: str) -> tuple[str, str] | None:
    """Returns (yaml text, body) or None when the note has no closed fence."""
    lines = md_text.split("\n")
    if not lines or lines[0].strip() != FRONTMATTER_FENCE:
        return None
    for end, line in enumerate(lines[1:], start=1):
        if line.strip() == FRONTMATTER_FENCE:
            return "\n".join(lines[1:end]), "\n".join(lines[end + 1 :])
    return None


def parse_frontmatter(md_text: str) -> tuple[dict[str, Any], str]:
    """
    Parse the YAML frontmatter of a note.

    Returns (meta, body). A note without frontmatter gives ({}, text). Invalid
    YAML gives ({"__yaml_error__": message}, text) so callers can report it.
    """
    md_text = md_text.lstrip("\ufeff")

    split = _split_frontmatter(md_text)
    if split is None:
        return {}, md_text
    raw, body = split

    # Tab indentation is a common hand-editing mistake
    raw = raw.replace("\t", "  ")

    try:
        meta = yaml.load(raw, Loader=UniqueKeyLoader) or {}
    except yaml.YAMLError as e:
        return {"__yaml_error__": str(e)}, md_text

    if not isinstance(meta, dict):
        return {"__yaml_error__": "frontmatter is not a mapping"}, md_text
    return meta, body


def rebuild_markdown_with_frontmatter(meta: dict[str, Any], body: str) -> str:
    yaml_text = yaml.dump(
        meta,
        Dumper=_LiteralDumper,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
        width=10**9,
    )
    return f"{FRONTMATTER_FENCE}\n{yaml_text}{FRONTMATTER_FENCE}\n{body}"
