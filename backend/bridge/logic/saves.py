"""Parser for the tracker's compact save index.

The index is a comma-separated list of entries, each with pipe-separated
fields::

    id|created[>updated]|percentEncodedName|game|settings|attempts

Entries are parsed independently. A malformed entry is reported in
``SaveIndex.skipped`` and never aborts the rest of the index.
"""

import re
from urllib.parse import unquote

import structlog

from bridge.logic.exceptions import DecodeError
from bridge.logic.models import RunRecord, SaveIndex, SkippedEntry

logger = structlog.get_logger()

ENTRY_SEPARATOR = ","
FIELD_SEPARATOR = "|"
TIME_SEPARATOR = ">"

# attempts is the only optional trailing field
_MIN_FIELDS = 5
_MAX_FIELDS = 6

_MALFORMED_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_POSITIVE_INT = re.compile(r"^\s*\+?\d+\s*$")


def decode_run_name(encoded: str) -> str:
    """Percent-decode a run name, rejecting malformed escapes.

    Stricter than ``urllib.parse.unquote``, which passes bad escapes through:
    a stray ``%`` or an escape sequence that is not valid UTF-8 raises DecodeError.
    """
    if _MALFORMED_ESCAPE.search(encoded):
        raise DecodeError(f"malformed percent-escape in {encoded!r}")
    try:
        return unquote(encoded, errors="strict")
    except UnicodeDecodeError as e:
        raise DecodeError(f"percent-escapes in {encoded!r} are not valid UTF-8") from e


def parse_attempts(raw: str | None) -> int:
    """Return the attempt count, defaulting to 1 unless ``raw`` is a positive integer."""
    if raw is None or not _POSITIVE_INT.match(raw):
        return 1
    try:
        return int(raw) or 1
    except ValueError:
        # beyond the interpreter's integer string-conversion digit limit
        return 1


def parse_entry(entry: str) -> RunRecord:
    """Parse one save index entry. Raises DecodeError if it is malformed."""
    fields = entry.split(FIELD_SEPARATOR)
    if not _MIN_FIELDS <= len(fields) <= _MAX_FIELDS:
        raise DecodeError(f"expected {_MIN_FIELDS}-{_MAX_FIELDS} fields, got {len(fields)}")

    run_id, time, encoded_name, game, settings = fields[:_MIN_FIELDS]
    attempts = fields[_MIN_FIELDS] if len(fields) == _MAX_FIELDS else None
    if not run_id:
        raise DecodeError("empty run id")

    created, _, updated = time.partition(TIME_SEPARATOR)
    return RunRecord(
        id=run_id,
        created=created,
        updated=updated or None,
        name=decode_run_name(encoded_name),
        game=game,
        settings=settings,
        attempts=parse_attempts(attempts),
    )


def parse_saved_games(raw: str | None) -> SaveIndex:
    """Parse the raw save index into runs keyed by id.

    Empty input yields an empty index. On duplicate ids the later entry
    replaces the earlier record while keeping its position.
    """
    if not raw:
        return SaveIndex()

    runs: dict[str, RunRecord] = {}
    skipped: list[SkippedEntry] = []
    segments = [segment for segment in raw.split(ENTRY_SEPARATOR) if segment]
    for position, segment in enumerate(segments):
        try:
            record = parse_entry(segment)
        except DecodeError as e:
            skipped.append(SkippedEntry(position=position, raw=segment, reason=str(e)))
            continue
        if record.id in runs:
            skipped.append(
                SkippedEntry(position=position, raw=segment, reason=f"duplicate run id {record.id!r} replaced"),
            )
        runs[record.id] = record

    if skipped:
        logger.warning(
            "save index entries skipped",
            count=len(skipped),
            reasons=[entry.reason for entry in skipped],
        )
    return SaveIndex(runs=runs, skipped=tuple(skipped))
