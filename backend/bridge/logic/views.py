"""Derived views over a decoded snapshot.

Every function here is pure and total: identical snapshots always give
identical output, in the same order.
"""

from bridge.logic.enums import AVAILABLE_STATUSES, UNAVAILABLE_STATUSES
from bridge.logic.models import BossEncounterRecord, CreatureRecord, GameSnapshot, RunRecord, RunSummary


def is_team_eligible(record: CreatureRecord) -> bool:
    # A record without a status code is shown as captured.
    return record.species is not None and record.status_code not in UNAVAILABLE_STATUSES


def is_box_eligible(record: CreatureRecord) -> bool:
    return record.species is not None and record.status_code in AVAILABLE_STATUSES


def is_graveyard_eligible(record: CreatureRecord) -> bool:
    return record.species is not None and record.is_dead


def extract_team(snapshot: GameSnapshot) -> list[CreatureRecord]:
    """Resolve the ordered team list, dropping empty, unknown, missed, trashed and dead slots."""
    team = []
    for location_id in snapshot.team_order:
        record = snapshot.locations.get(location_id)
        if record is not None and is_team_eligible(record):
            team.append(record)
    return team


def extract_box(snapshot: GameSnapshot) -> list[CreatureRecord]:
    return [record for record in snapshot.locations.values() if is_box_eligible(record)]


def extract_dead(snapshot: GameSnapshot) -> list[CreatureRecord]:
    return [record for record in snapshot.locations.values() if is_graveyard_eligible(record)]


def extract_bosses(snapshot: GameSnapshot) -> list[BossEncounterRecord]:
    return list(snapshot.boss_encounters)


def count_caught(snapshot: GameSnapshot) -> int:
    """Count every owned creature, regardless of team or box placement."""
    return sum(1 for record in snapshot.locations.values() if is_box_eligible(record))


def summarize(snapshot: GameSnapshot, run: RunRecord) -> RunSummary:
    """Combine snapshot counts with run metadata from the save index.

    team_count is the length of the raw team order, so dead or missing
    members still count toward it.
    """
    return RunSummary(
        game_id=run.id,
        game_name=run.name,
        game_version=run.game,
        created=run.created,
        updated=run.updated,
        attempts=run.attempts,
        starter=snapshot.starter,
        team_count=len(snapshot.team_order),
        box_count=len(extract_box(snapshot)),
        dead_count=len(extract_dead(snapshot)),
        total_caught=count_caught(snapshot),
    )
