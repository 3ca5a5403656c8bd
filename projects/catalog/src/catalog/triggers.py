"""Detection of sequences used by insert triggers."""

import re
from collections.abc import Iterable

_NEXTVAL = re.compile(r"(\w+)\s*\.\s*NEXTVAL", re.IGNORECASE)


def detect_trigger_sequence(trigger_bodies: Iterable[str | None]) -> str | None:
    """Return the first sequence referenced as SEQ.NEXTVAL in the trigger bodies."""
    for body in trigger_bodies:
        if body and (match := _NEXTVAL.search(body)):
            return match.group(1).upper()
    return None
