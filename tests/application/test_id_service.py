import re

from reprise.application.id_service import assign_card_ids, generate_card_id
from reprise.application.utils.text import parse_frontmatter

UNNUMBERED = """---
cards:
  - card-type: sided
    content: Question one?
  - id: rp_existing
    card-type: sided
    content: Question two?
  - content: Draft without id
---
Body
"""


def test_generate_card_id_format():
    card_id = generate_card_id()
    assert re.fullmatch(r"rp_[0-9A-HJKMNP-TV-Z]{26}", card_id)
    assert generate_card_id() != card_id


def test_assign_ids(tmp_path):
    note = tmp_path / "note.md"
    note.write_text(UNNUMBERED, encoding="utf-8")

    assert assign_card_ids(tmp_path) == 2

    meta, body = parse_frontmatter(note.read_text(encoding="utf-8"))
    ids = [card["id"] for card in meta["cards"]]
    assert ids[1] == "rp_existing"
    assert all(i.startswith("rp_") for i in ids)
    assert len(set(ids)) == 3
    assert body == "Body\n"

    # Second run is a no-op
    assert assign_card_ids(tmp_path) == 0


def test_assign_ids_dry_run(tmp_path):
    note = tmp_path / "note.md"
    note.write_text(UNNUMBERED, encoding="utf-8")

    assert assign_card_ids(tmp_path, dry_run=True) == 2
    assert note.read_text(encoding="utf-8") == UNNUMBERED


def test_skips_files_without_cards(tmp_path):
    (tmp_path / "plain.md").write_text("# Just notes\n", encoding="utf-8")
    (tmp_path / "broken.md").write_text("---\ncards: [\n---\n", encoding="utf-8")
    assert assign_card_ids(tmp_path) == 0
