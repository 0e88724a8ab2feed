"""Change detection over the raw (save index, run state) pair.

Fingerprints are computed from the raw text before any parsing, so they are
total over malformed input. They live only in process memory: a restart
starts from "unknown" and the first observation always counts as a change.
"""

import hashlib
import json


def fingerprint(raw_index: str | None, raw_state: str | None) -> str:
    """Return a deterministic digest of the raw pair.

    The pair is JSON-encoded before hashing so field boundaries are
    unambiguous (``("ab", "c")`` and ``("a", "bc")`` never collide by
    construction).
    """
    encoded = json.dumps([raw_index, raw_state], ensure_ascii=True, separators=(",", ":"))
    return hashlib.sha256(encoded.encode("ascii")).hexdigest()


def has_changed(previous: str | None, current: str) -> bool:
    return previous != current


class ChangeDetector:
    """Track the most recent fingerprint seen by one observer loop."""

    def __init__(self) -> None:
        self._last_fingerprint: str | None = None

    @property
    def last_fingerprint(self) -> str | None:
        return self._last_fingerprint

    def observe(self, raw_index: str | None, raw_state: str | None) -> bool:
        """Record the pair's fingerprint and return whether it differs from the last one."""
        current = fingerprint(raw_index, raw_state)
        changed = has_changed(self._last_fingerprint, current)
        self._last_fingerprint = current
        return changed

    def reset(self) -> None:
        """Forget the last fingerprint so the next observation counts as a change."""
        self._last_fingerprint = None
