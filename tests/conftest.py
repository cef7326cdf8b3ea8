from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

import pytest

from reprise.domain.errors import NodeNotFoundError
from reprise.domain.models import Node
from reprise.domain.ports import NodeStore

FIXED_NOW = datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc)


class FakeNodeStore(NodeStore):
    """In-memory node store. Records every write and can be told to fail."""

    def __init__(self):
        self.nodes: dict[str, dict[str, Any]] = {}
        self.children: dict[str, list[str]] = {}
        self.writes: list[tuple[str, dict[str, Any]]] = []
        self.fetches: list[str] = []
        self.fail_writes = False

    def add(self, node_id, content="", parent=None, **props):
        self.nodes[node_id] = {"content": content, "properties": dict(props)}
        self.children.setdefault(node_id, [])
        if parent is not None:
            self.children[parent].append(node_id)
        return node_id

    def _node(self, node_id, depth=0):
        if node_id not in self.nodes:
            raise NodeNotFoundError(f"Node not found: {node_id}")
        data = self.nodes[node_id]
        return Node(
            id=node_id,
            content=data["content"],
            properties=dict(data["properties"]),
            depth=depth,
        )

    def fetch_node(self, node_id):
        self.fetches.append(node_id)
        return self._node(node_id)

    def fetch_node_and_descendants(self, node_id):
        self.fetches.append(node_id)
        descendants = []

        def walk(parent_id, depth):
            for child_id in self.children.get(parent_id, []):
                descendants.append(self._node(child_id, depth))
                walk(child_id, depth + 1)

        walk(node_id, 1)
        return self._node(node_id), descendants

    def read_properties(self, node):
        return dict(node.properties)

    def write_properties(self, node, props: Mapping[str, Any]):
        if self.fail_writes:
            return False
        self.writes.append((node.id, dict(props)))
        self.nodes[node.id]["properties"].update(props)
        return True

    def iter_card_nodes(self, deck=None):
        for node_id, data in self.nodes.items():
            props = data["properties"]
            if "card-type" not in props:
                continue
            if deck is not None and props.get("deck") != deck:
                continue
            yield self._node(node_id)


@pytest.fixture
def fake_store():
    return FakeNodeStore()


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


SAMPLE_NOTE = """---
deck: Geography
cards:
  - id: rp_france
    card-type: sided
    content: Capital of France?
    children:
      - Paris
      - content: On the Seine
        children:
          - Since 508
  - id: rp_rivers
    card-type: cloze
    content: "The {{cloze Nile}} is in {{cloze: Africa}}"
  - id: rp_plain
    content: Not a card, no type marker
---
# Geography

Body text stays untouched.
"""

SECOND_NOTE = """---
deck: Chemistry
cards:
  - id: rp_water
    card-type: sided
    content: Formula of water?
    card-repeats: 3
    card-next-schedule: '2099-01-01T00:00:00+00:00'
    children:
      - H2O
---
"""


@pytest.fixture
def mock_vault(tmp_path):
    """Creates a temporary directory structure mimicking a vault."""
    d = tmp_path / "MyVault"
    d.mkdir()
    (d / "geo.md").write_text(SAMPLE_NOTE, encoding="utf-8")
    (d / "sub").mkdir()
    (d / "sub" / "chem.md").write_text(SECOND_NOTE, encoding="utf-8")
    return d


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config and the matrix file
    monkeypatch.setenv("HOME", str(home))
    for var in ("VAULT_ROOT", "MATRIX_PATH", "SUMMARY_PATH", "DECK", "MATRIX_SCOPE"):
        monkeypatch.delenv(f"REPRISE_{var}", raising=False)
    return home


@pytest.fixture(autouse=True)
def _fresh_matrix_cache():
    from reprise.application import factory

    factory._matrix_states.clear()
    yield
    factory._matrix_states.clear()
