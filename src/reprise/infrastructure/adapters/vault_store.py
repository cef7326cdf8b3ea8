"""
Node store backed by a vault of Markdown files.

Cards live in the YAML frontmatter of each note:

    ---
    deck: Geography
    cards:
      - id: rp_01J...
        card-type: sided
        content: Capital of France?
        children:
          - content: Paris
    ---

Scheduling properties are stored as plain keys next to `content`. Children may
be written as bare strings. Descendants are addressed as `<card id>/<i>/<j>`.

Content using the `{{cloze: text}}` form must be quoted, since a bare `": "`
inside a plain YAML scalar is a syntax error and the whole note is skipped:

    content: "The {{cloze: Nile}} is in Africa"
"""

import logging
import threading
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import Any

from reprise.application.utils.fs import atomic_write_text, iter_markdown_files
from reprise.application.utils.text import parse_frontmatter, rebuild_markdown_with_frontmatter
from reprise.domain.constants import CARD_TYPE_PROPERTY, NODE_ID_SEPARATOR, NODE_STRUCTURE_KEYS
from reprise.domain.errors import NodeNotFoundError
from reprise.domain.models import Node
from reprise.domain.ports import NodeStore

# One lock per note file, shared by every store in the process. Writes are
# read-modify-replace of the whole file.
_file_locks: dict[Path, threading.Lock] = {}
_file_locks_guard = threading.Lock()


def _file_lock(path: Path) -> threading.Lock:
    key = path.resolve()
    with _file_locks_guard:
        return _file_locks.setdefault(key, threading.Lock())


def _properties_of(entry: Mapping[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in entry.items() if k not in NODE_STRUCTURE_KEYS}


def _node_from_entry(node_id: str, entry: Any, depth: int, source: Path) -> Node:
    if isinstance(entry, Mapping):
        content = entry.get("content")
        return Node(
            id=node_id,
            content="" if content is None else str(content),
            properties=_properties_of(entry),
            depth=depth,
            source=str(source),
        )
    return Node(id=node_id, content="" if entry is None else str(entry), depth=depth, source=str(source))


def _children_of(entry: Any) -> list[Any]:
    if isinstance(entry, Mapping):
        children = entry.get("children")
        if isinstance(children, list):
            return children
    return []


class VaultNodeStore(NodeStore):
    """
    Reads and writes card nodes in Markdown frontmatter.

    Every fetch re-reads the file so callers always see the current text. The
    id -> file index is only a lookup hint and is rebuilt when it misses.
    """

    def __init__(self, root: Path):
        self.root = Path(root)
        self._index: dict[str, Path] = {}
        self.logger = logging.getLogger(__name__)

    # ---------- Scanning ----------

    def _read_meta(self, path: Path) -> tuple[dict[str, Any], str] | None:
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            self.logger.warning(f"[vault] Cannot read {path}: {e}")
            return None
        meta, body = parse_frontmatter(text)
        if not meta:
            return None
        if "__yaml_error__" in meta:
            self.logger.warning(f"[vault] Bad YAML in {path.name}: {meta['__yaml_error__']}")
            return None
        if not isinstance(meta.get("cards"), list):
            return None
        return meta, body

    def _iter_entries(self) -> Iterator[tuple[Path, dict[str, Any], dict[str, Any]]]:
        for path in iter_markdown_files(self.root):
            loaded = self._read_meta(path)
            if loaded is None:
                continue
            meta, _ = loaded
            for entry in meta["cards"]:
                if not isinstance(entry, dict):
                    continue
                card_id = entry.get("id")
                if not card_id:
                    self.logger.debug(f"[vault] Card without id in {path.name} (run 'reprise ids')")
                    continue
                yield path, meta, entry

    def rebuild_index(self) -> None:
        self._index = {str(entry["id"]): path for path, _, entry in self._iter_entries()}
        self.logger.debug(f"[vault] Indexed {len(self._index)} node(s) under {self.root}")

    def _locate(self, root_id: str) -> tuple[Path, dict[str, Any], str]:
        for attempt in range(2):
            path = self._index.get(root_id)
            if path is not None:
                loaded = self._read_meta(path)
                if loaded is not None:
                    meta, body = loaded
                    if self._find_entry(meta, root_id) is not None:
                        return path, meta, body
            if attempt == 0:
                self.rebuild_index()
        raise NodeNotFoundError(f"Node not found: {root_id}")

    @staticmethod
    def _find_entry(meta: dict[str, Any], root_id: str) -> dict[str, Any] | None:
        for entry in meta.get("cards", []):
            if isinstance(entry, dict) and str(entry.get("id")) == root_id:
                return entry
        return None

    def _resolve(self, node_id: str) -> tuple[Path, dict[str, Any], str, Any, int]:
        """Returns (path, meta, body, entry, depth) for any node id."""
        root_id, *steps = node_id.split(NODE_ID_SEPARATOR)
        path, meta, body = self._locate(root_id)
        entry: Any = self._find_entry(meta, root_id)
        for step in steps:
            children = _children_of(entry)
            try:
                entry = children[int(step)]
            except (ValueError, IndexError):
                raise NodeNotFoundError(f"Node not found: {node_id}") from None
        return path, meta, body, entry, len(steps)

    # ---------- NodeStore ----------

    def fetch_node(self, node_id: str) -> Node:
        path, _, _, entry, depth = self._resolve(node_id)
        return _node_from_entry(node_id, entry, depth, path)

    def fetch_node_and_descendants(self, node_id: str) -> tuple[Node, list[Node]]:
        path, _, _, entry, depth = self._resolve(node_id)
        root = _node_from_entry(node_id, entry, depth, path)

        descendants: list[Node] = []

        def walk(parent: Any, parent_id: str, parent_depth: int) -> None:
            for i, child in enumerate(_children_of(parent)):
                child_id = f"{parent_id}{NODE_ID_SEPARATOR}{i}"
                descendants.append(_node_from_entry(child_id, child, parent_depth + 1, path))
                walk(child, child_id, parent_depth + 1)

        walk(entry, node_id, depth)
        return root, descendants

    def read_properties(self, node: Node) -> dict[str, Any]:
        return dict(node.properties)

    def write_properties(self, node: Node, props: Mapping[str, Any]) -> bool:
        try:
            located, _, _ = self._locate(node.id.split(NODE_ID_SEPARATOR)[0])
            with _file_lock(located):
                # The note is read and replaced while holding its lock.
                path, meta, body, entry, _ = self._resolve(node.id)
                if not isinstance(entry, dict):
                    # Bare-string child: promote it to a mapping so it can carry properties.
                    entry = self._promote_child(meta, node.id)
                entry.update(props)
                atomic_write_text(path, rebuild_markdown_with_frontmatter(meta, body))
        except NodeNotFoundError as e:
            self.logger.error(f"[write] {e}")
            return False
        except OSError as e:
            self.logger.error(f"[write] {located}: {e}")
            return False

        self.logger.debug(f"[write] {path}: updated {', '.join(props)} on {node.id}")
        return True

    def _promote_child(self, meta: dict[str, Any], node_id: str) -> dict[str, Any]:
        root_id, *steps = node_id.split(NODE_ID_SEPARATOR)
        parent: Any = self._find_entry(meta, root_id)
        for step in steps[:-1]:
            parent = _children_of(parent)[int(step)]
        children = parent["children"]
        last = int(steps[-1])
        promoted = {"content": "" if children[last] is None else str(children[last])}
        children[last] = promoted
        return promoted

    def iter_card_nodes(self, deck: str | None = None) -> Iterator[Node]:
        for path, meta, entry in self._iter_entries():
            if CARD_TYPE_PROPERTY not in entry:
                continue
            if deck is not None and (entry.get("deck") or meta.get("deck")) != deck:
                continue
            self._index[str(entry["id"])] = path
            yield _node_from_entry(str(entry["id"]), entry, 0, path)
