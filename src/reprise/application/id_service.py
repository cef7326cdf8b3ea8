"""Service for managing stable ids for cards."""

import logging
from pathlib import Path

from ulid import ULID

from reprise.application.utils.fs import atomic_write_text, iter_markdown_files
from reprise.application.utils.text import parse_frontmatter, rebuild_markdown_with_frontmatter
from reprise.domain.constants import CARD_ID_PREFIX

logger = logging.getLogger(__name__)


def generate_card_id() -> str:
    """Generate a stable card id using ULID."""
    return f"{CARD_ID_PREFIX}{ULID()}"


def assign_card_ids(vault_root: Path, dry_run: bool = False) -> int:
    """
    Scans the vault and ensures every card has a stable id.
    Returns the number of ids assigned.
    """
    ids_assigned = 0

    for file_path in iter_markdown_files(vault_root):
        content = file_path.read_text(encoding="utf-8")
        meta, body = parse_frontmatter(content)

        if not meta or "__yaml_error__" in meta:
            continue

        cards = meta.get("cards", [])
        if not isinstance(cards, list):
            continue

        modified = False
        for card in cards:
            if not isinstance(card, dict):
                continue

            if not card.get("id"):
                card["id"] = generate_card_id()
                modified = True
                ids_assigned += 1

        if modified:
            if not dry_run:
                atomic_write_text(file_path, rebuild_markdown_with_frontmatter(meta, body))
                logger.info(f"Assigned IDs in {file_path}")
            else:
                logger.info(f"[DRY RUN] Would assign IDs in {file_path}")

    return ids_assigned
