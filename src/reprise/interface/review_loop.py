"""Interactive terminal driver for a review session, with injectable IO."""

from collections.abc import Callable

from reprise.application.session import ReviewSession
from reprise.domain.errors import RepriseError
from reprise.domain.models import Phase
from reprise.infrastructure.rendering import render_nodes

SCORE_HELP = [
    "0-2: you have forgotten this card.",
    "3-5: you remember this card.",
    "0: completely forgot.",
    "1: it still takes a while to recall even after seeing the answer.",
    "2: immediately recall after seeing the answer.",
    "3: it takes a while to recall. (will reappear after {days_3} days)",
    "4: you recall this after a little thought. (will reappear after {days_4} days)",
    "5: you remember it easily. (will reappear after {days_5} days)",
]


def _key_help(session: ReviewSession) -> str:
    keys = ["[a] show answer" if session.phase is Phase.QUESTION else "[h] hide answer"]
    if session.read_only:
        keys.append("[n] next")
    else:
        if session.phase is Phase.ANSWER:
            keys.append("[0-5] score")
            if len(session.queue) > 1:
                keys.append("[s] skip")
        keys.append("[r] reset")
    keys.append("[q] quit")
    return "  ".join(keys)


def _show(session: ReviewSession, output_fn: Callable[[str], None]) -> None:
    card = session.current
    output_fn(f"\n--- Card {session.cursor + 1}/{len(session.queue)} [{card.card_type.value}] ---")
    output_fn(render_nodes(session.visible_nodes(), session.display_config()))
    if session.phase is Phase.ANSWER and not session.read_only:
        hints = session.score_hints()
        output_fn("")
        days = {f"days_{q}": d for q, d in hints.items()}
        for line in SCORE_HELP:
            output_fn("  " + line.format(**days))
    output_fn(_key_help(session))


def run_interactive(
    session: ReviewSession,
    input_fn: Callable[[str], str] = input,
    output_fn: Callable[[str], None] = print,
) -> None:
    """
    Drive `session` until it completes or the reviewer quits.

    Quitting (or end of input) finishes the session, so the completion
    callback still runs for whatever was recorded.
    """
    while session.is_active:
        _show(session, output_fn)

        try:
            key = input_fn("> ").strip().lower()
        except (EOFError, KeyboardInterrupt):
            output_fn("\nSession ended.")
            session.finish()
            break

        try:
            if key in ("a", ""):
                session.reveal()
            elif key == "h":
                session.hide()
            elif key in ("0", "1", "2", "3", "4", "5"):
                session.score(int(key))
            elif key == "s":
                session.skip()
            elif key == "r":
                session.reset()
                output_fn("  (card reset)")
            elif key == "n":
                session.next_item()
            elif key == "q":
                output_fn("Ending session early.")
                session.finish()
            else:
                output_fn(f"  Unknown key: {key!r}")
        except RepriseError as e:
            output_fn(f"  {e}")
