"""
In-memory store with one JSON snapshot file per collection.

Each mutation rewrites the affected collection's snapshot before returning;
startup reloads every snapshot found in the data directory. Reads never touch
the disk. Validation mirrors the relational schema so both backends raise the
same errors with the same messages.
"""
from __future__ import annotations

import copy
import json
import logging
import os
import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Iterable, Iterator, Mapping

from teamhub.join_code import generate_join_code, normalize_join_code
from teamhub.models import (
    COLLECTIONS,
    Announcement,
    Attendance,
    Event,
    Invitation,
    LeagueClassification,
    Match,
    MatchCard,
    MatchGoal,
    MatchLineup,
    MatchPhoto,
    MatchSubstitution,
    MemberClaim,
    PlayerStat,
    Season,
    Team,
    TeamLineup,
    TeamMember,
    User,
    parse_datetime,
    record_from_dict,
    record_to_dict,
)

from .errors import (
    CascadeError,
    ConflictError,
    InternalStorageError,
    ReferenceIntegrityError,
)
from .invariants import (
    CASCADE,
    DELETE_RULES,
    RESTRICT,
    UNIQUE_KEYS,
    missing_parent_message,
    references,
    restricting_rules,
)
from .records import build_record, checked_join_code, merge_record
from .sessions import MemorySessionStore, SessionStore

logger = logging.getLogger(__name__)

SEQUENCES_FILE = "_sequences.json"
JOIN_CODE_ATTEMPTS = 10


def _limit(rows: list[Any], limit: int | None) -> list[Any]:
    return rows if limit is None else rows[: max(limit, 0)]


class SnapshotStore:
    """Repository backed by per-collection dicts and JSON snapshots in data_dir."""

    def __init__(self, data_dir: str | Path, session_store: SessionStore | None = None) -> None:
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.session_store = session_store if session_store is not None else MemorySessionStore()
        self._rows: dict[str, dict[int, Any]] = {name: {} for name in COLLECTIONS}
        self._next_id: dict[str, int] = {name: 1 for name in COLLECTIONS}
        self._locks: dict[str, threading.RLock] = {name: threading.RLock() for name in COLLECTIONS}
        self._sequence_lock = threading.Lock()
        self._cascade_guard = threading.Lock()
        self._cascade_locks: dict[tuple[str, int], list[Any]] = {}
        self._load()

    def close(self) -> None:
        """Snapshots are already on disk; nothing to flush."""
        logger.debug("Snapshot store at %s closed", self.data_dir)

    # ---------- Snapshot files ----------

    def _snapshot_path(self, collection: str) -> Path:
        return self.data_dir / f"{collection}.json"

    def _load(self) -> None:
        sequences: dict[str, int] = {}
        seq_path = self.data_dir / SEQUENCES_FILE
        if seq_path.exists():
            sequences = self._read_json(seq_path)
        for collection, cls in COLLECTIONS.items():
            path = self._snapshot_path(collection)
            rows: dict[int, Any] = {}
            if path.exists():
                for data in self._read_json(path):
                    record = record_from_dict(cls, data)
                    rows[record.id] = record
            self._rows[collection] = dict(sorted(rows.items()))
            highest = max(rows, default=0)
            self._next_id[collection] = max(highest + 1, int(sequences.get(collection, 1)), 1)
            if rows:
                logger.info("Loaded %d %s from %s", len(rows), collection, path)

    def _read_json(self, path: Path) -> Any:
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as exc:
            logger.exception("Could not read snapshot %s", path)
            raise InternalStorageError("could not load snapshot") from exc

    def _write_json(self, path: Path, payload: Any) -> None:
        tmp = path.with_name(path.name + ".tmp")
        try:
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
            os.replace(tmp, path)
        except (OSError, TypeError, ValueError) as exc:
            logger.exception("Could not write snapshot %s", path)
            raise InternalStorageError("could not persist data") from exc

    def _persist(self, collection: str) -> None:
        rows = [record_to_dict(r) for _, r in sorted(self._rows[collection].items())]
        self._write_json(self._snapshot_path(collection), rows)
        logger.debug("Wrote %d %s", len(rows), collection)

    def _persist_sequences(self) -> None:
        with self._sequence_lock:
            self._write_json(self.data_dir / SEQUENCES_FILE, dict(self._next_id))

    # ---------- Invariant checks ----------

    def _check_unique(
        self,
        collection: str,
        record: Any,
        exclude_id: int | None = None,
        pending: Iterable[Any] = (),
    ) -> None:
        """pending: rows of the same batch that are not in the map yet."""
        for key in UNIQUE_KEYS.get(collection, ()):
            wanted = tuple(getattr(record, f) for f in key.fields)
            if not key.null_matches and any(v is None for v in wanted):
                continue
            for other in [*self._rows[collection].values(), *pending]:
                if exclude_id is not None and other.id == exclude_id:
                    continue
                if tuple(getattr(other, f) for f in key.fields) == wanted:
                    raise ConflictError(key.message)

    def _check_references(self, collection: str, record: Any, changed: Mapping[str, Any] | None = None) -> None:
        for ref in references(collection):
            if changed is not None and ref.field not in changed:
                continue
            value = getattr(record, ref.field)
            if value is not None and value not in self._rows[ref.parent]:
                raise ReferenceIntegrityError(missing_parent_message(ref.parent))

    # ---------- Generic operations ----------

    def _get(self, collection: str, record_id: int) -> Any | None:
        record = self._rows[collection].get(record_id)
        return copy.deepcopy(record) if record is not None else None

    def _select(
        self,
        collection: str,
        predicate: Callable[[Any], bool] = lambda r: True,
        key: Callable[[Any], Any] | None = None,
        reverse: bool = False,
        limit: int | None = None,
    ) -> list[Any]:
        with self._locks[collection]:
            rows = [r for r in self._rows[collection].values() if predicate(r)]
        if key is not None:
            rows.sort(key=key, reverse=reverse)
        return [copy.deepcopy(r) for r in _limit(rows, limit)]

    def _first(self, collection: str, predicate: Callable[[Any], bool]) -> Any | None:
        rows = self._select(collection, predicate, limit=1)
        return rows[0] if rows else None

    def _insert(self, collection: str, values: Mapping[str, Any], prepare: Callable[[Any], Any] | None = None) -> Any:
        cls = COLLECTIONS[collection]
        with self._locks[collection]:
            record = build_record(cls, None, values)
            if prepare is not None:
                record = prepare(record)
            self._check_unique(collection, record)
            self._check_references(collection, record)
            with self._sequence_lock:
                record_id = self._next_id[collection]
                self._next_id[collection] = record_id + 1
            record = replace(record, id=record_id)
            self._persist_sequences()
            self._rows[collection][record_id] = record
            try:
                self._persist(collection)
            except InternalStorageError:
                del self._rows[collection][record_id]
                raise
        logger.debug("Created %s %d", collection, record_id)
        return copy.deepcopy(record)

    def _insert_many(self, collection: str, batch: Iterable[Mapping[str, Any]]) -> list[Any]:
        """All rows are validated before any is stored; one snapshot write for the batch."""
        cls = COLLECTIONS[collection]
        with self._locks[collection]:
            records: list[Any] = []
            for values in batch:
                record = build_record(cls, None, values)
                self._check_unique(collection, record, pending=records)
                self._check_references(collection, record)
                records.append(record)
            if not records:
                return []
            with self._sequence_lock:
                first_id = self._next_id[collection]
                self._next_id[collection] = first_id + len(records)
            records = [replace(r, id=first_id + i) for i, r in enumerate(records)]
            self._persist_sequences()
            for record in records:
                self._rows[collection][record.id] = record
            try:
                self._persist(collection)
            except InternalStorageError:
                for record in records:
                    del self._rows[collection][record.id]
                raise
        logger.debug("Created %d %s", len(records), collection)
        return copy.deepcopy(records)

    def _update(
        self,
        collection: str,
        record_id: int,
        changes: Mapping[str, Any],
        prepare: Callable[[Any], Any] | None = None,
    ) -> Any | None:
        with self._locks[collection]:
            current = self._rows[collection].get(record_id)
            if current is None:
                return None
            updated = merge_record(current, changes)
            if prepare is not None:
                updated = prepare(updated)
            self._check_unique(collection, updated, exclude_id=record_id)
            self._check_references(collection, updated, changed=changes)
            self._rows[collection][record_id] = updated
            try:
                self._persist(collection)
            except InternalStorageError:
                self._rows[collection][record_id] = current
                raise
        return copy.deepcopy(updated)

    def _clear_field(self, collection: str, record_id: int, field_name: str) -> None:
        with self._locks[collection]:
            current = self._rows[collection].get(record_id)
            if current is None:
                return
            self._rows[collection][record_id] = replace(current, **{field_name: None})
            try:
                self._persist(collection)
            except InternalStorageError:
                self._rows[collection][record_id] = current
                raise

    def _remove(self, collection: str, record_id: int) -> bool:
        with self._locks[collection]:
            record = self._rows[collection].pop(record_id, None)
            if record is None:
                return False
            try:
                self._persist(collection)
            except InternalStorageError:
                self._rows[collection][record_id] = record
                self._rows[collection] = dict(sorted(self._rows[collection].items()))
                raise
        logger.debug("Deleted %s %d", collection, record_id)
        return True

    @contextmanager
    def _cascade_lock(self, collection: str, record_id: int) -> Iterator[None]:
        key = (collection, record_id)
        with self._cascade_guard:
            entry = self._cascade_locks.get(key)
            if entry is None:
                entry = self._cascade_locks[key] = [threading.RLock(), 0]
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._cascade_guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._cascade_locks[key]

    def _dependents(self, collection: str, field_name: str, record_id: int) -> list[int]:
        with self._locks[collection]:
            return [r.id for r in self._rows[collection].values() if getattr(r, field_name) == record_id]

    def _delete(self, collection: str, record_id: int) -> bool:
        """Apply the collection's delete rules in order, then remove the row."""
        with self._cascade_lock(collection, record_id):
            if record_id not in self._rows[collection]:
                return False
            for rule in restricting_rules(collection):
                if self._dependents(rule.child, rule.field, record_id):
                    logger.info("Refusing to delete %s %d: still referenced by %s", collection, record_id, rule.child)
                    return False
            for rule in DELETE_RULES.get(collection, ()):
                if rule.action == RESTRICT:
                    continue
                for child_id in self._dependents(rule.child, rule.field, record_id):
                    if rule.action == CASCADE:
                        self._delete(rule.child, child_id)
                        if child_id in self._rows[rule.child]:
                            logger.warning("Cascade from %s %d stopped at %s %d", collection, record_id, rule.child, child_id)
                            raise CascadeError()
                    else:
                        self._clear_field(rule.child, child_id, rule.field)
            return self._remove(collection, record_id)

    # ---------- Users ----------

    def get_user(self, user_id: int) -> User | None:
        return self._get("users", user_id)

    def get_user_by_username(self, username: str) -> User | None:
        return self._first("users", lambda u: u.username == username)

    def get_user_by_email(self, email: str) -> User | None:
        return self._first("users", lambda u: u.email is not None and u.email == email)

    def list_users(self, limit: int | None = None) -> list[User]:
        return self._select("users", limit=limit)

    def create_user(self, values: Mapping[str, Any]) -> User:
        return self._insert("users", values)

    def update_user(self, user_id: int, changes: Mapping[str, Any]) -> User | None:
        return self._update("users", user_id, changes)

    def delete_user(self, user_id: int) -> bool:
        return self._delete("users", user_id)

    # ---------- Teams ----------

    def _assign_join_code(self, team: Team) -> Team:
        if team.join_code is not None:
            return checked_join_code(team)
        taken = {t.join_code for t in self._rows["teams"].values()}
        for _ in range(JOIN_CODE_ATTEMPTS):
            code = generate_join_code()
            if code not in taken:
                return replace(team, join_code=code)
        logger.error("Could not allocate a unique join code after %d attempts", JOIN_CODE_ATTEMPTS)
        raise InternalStorageError("could not allocate a unique join code")

    def get_team(self, team_id: int) -> Team | None:
        return self._get("teams", team_id)

    def get_team_by_join_code(self, join_code: str) -> Team | None:
        code = normalize_join_code(join_code)
        return self._first("teams", lambda t: t.join_code == code)

    def list_teams(self, limit: int | None = None) -> list[Team]:
        return self._select("teams", limit=limit)

    def list_teams_by_user(self, user_id: int) -> list[Team]:
        team_ids = {m.team_id for m in self._select("team_members", lambda m: m.user_id == user_id)}
        return self._select("teams", lambda t: t.id in team_ids, key=lambda t: t.id)

    def create_team(self, values: Mapping[str, Any]) -> Team:
        return self._insert("teams", values, prepare=self._assign_join_code)

    def update_team(self, team_id: int, changes: Mapping[str, Any]) -> Team | None:
        return self._update("teams", team_id, changes, prepare=lambda t: checked_join_code(t, required=True))

    def delete_team(self, team_id: int) -> bool:
        return self._delete("teams", team_id)

    # ---------- Team members ----------

    def get_team_member(self, member_id: int) -> TeamMember | None:
        return self._get("team_members", member_id)

    def get_team_member_by_user(self, team_id: int, user_id: int) -> TeamMember | None:
        return self._first("team_members", lambda m: m.team_id == team_id and m.user_id == user_id)

    def list_team_members(self, team_id: int) -> list[TeamMember]:
        return self._select("team_members", lambda m: m.team_id == team_id)

    def list_memberships(self, user_id: int) -> list[TeamMember]:
        return self._select("team_members", lambda m: m.user_id == user_id)

    def create_team_member(self, values: Mapping[str, Any]) -> TeamMember:
        return self._insert("team_members", values)

    def update_team_member(self, member_id: int, changes: Mapping[str, Any]) -> TeamMember | None:
        return self._update("team_members", member_id, changes)

    def delete_team_member(self, member_id: int) -> bool:
        return self._delete("team_members", member_id)

    # ---------- Member claims ----------

    def get_member_claim(self, claim_id: int) -> MemberClaim | None:
        return self._get("member_claims", claim_id)

    def list_member_claims(self, team_id: int, status: str | None = None) -> list[MemberClaim]:
        return self._select(
            "member_claims",
            lambda c: c.team_id == team_id and (status is None or c.status == status),
            key=lambda c: (c.requested_at, c.id),
            reverse=True,
        )

    def list_member_claims_by_user(self, user_id: int) -> list[MemberClaim]:
        return self._select(
            "member_claims",
            lambda c: c.user_id == user_id,
            key=lambda c: (c.requested_at, c.id),
            reverse=True,
        )

    def create_member_claim(self, values: Mapping[str, Any]) -> MemberClaim:
        return self._insert("member_claims", values)

    def update_member_claim(self, claim_id: int, changes: Mapping[str, Any]) -> MemberClaim | None:
        return self._update("member_claims", claim_id, changes)

    def delete_member_claim(self, claim_id: int) -> bool:
        return self._delete("member_claims", claim_id)

    # ---------- Matches ----------

    def get_match(self, match_id: int) -> Match | None:
        return self._get("matches", match_id)

    def list_matches(self, team_id: int, season_id: int | None = None, limit: int | None = None) -> list[Match]:
        return self._select(
            "matches",
            lambda m: m.team_id == team_id and (season_id is None or m.season_id == season_id),
            key=lambda m: (m.match_date, m.id),
            reverse=True,
            limit=limit,
        )

    def create_match(self, values: Mapping[str, Any]) -> Match:
        return self._insert("matches", values)

    def update_match(self, match_id: int, changes: Mapping[str, Any]) -> Match | None:
        return self._update("matches", match_id, changes)

    def delete_match(self, match_id: int) -> bool:
        return self._delete("matches", match_id)

    # ---------- Events and attendance ----------

    def get_event(self, event_id: int) -> Event | None:
        return self._get("events", event_id)

    def list_events(
        self,
        team_id: int,
        upcoming_after: datetime | str | None = None,
        limit: int | None = None,
    ) -> list[Event]:
        after = parse_datetime(upcoming_after) if upcoming_after is not None else None
        return self._select(
            "events",
            lambda e: e.team_id == team_id and (after is None or e.start_time >= after),
            key=lambda e: (e.start_time, e.id),
            limit=limit,
        )

    def create_event(self, values: Mapping[str, Any]) -> Event:
        return self._insert("events", values)

    def update_event(self, event_id: int, changes: Mapping[str, Any]) -> Event | None:
        return self._update("events", event_id, changes)

    def delete_event(self, event_id: int) -> bool:
        return self._delete("events", event_id)

    def get_attendance(self, attendance_id: int) -> Attendance | None:
        return self._get("attendance", attendance_id)

    def get_attendance_for_user(self, event_id: int, user_id: int) -> Attendance | None:
        return self._first("attendance", lambda a: a.event_id == event_id and a.user_id == user_id)

    def list_attendance(self, event_id: int | None = None, user_id: int | None = None) -> list[Attendance]:
        return self._select(
            "attendance",
            lambda a: (event_id is None or a.event_id == event_id) and (user_id is None or a.user_id == user_id),
        )

    def create_attendance(self, values: Mapping[str, Any]) -> Attendance:
        return self._insert("attendance", values)

    def update_attendance(self, attendance_id: int, changes: Mapping[str, Any]) -> Attendance | None:
        return self._update("attendance", attendance_id, changes)

    def delete_attendance(self, attendance_id: int) -> bool:
        return self._delete("attendance", attendance_id)

    # ---------- Player stats ----------

    def get_player_stat(self, stat_id: int) -> PlayerStat | None:
        return self._get("player_stats", stat_id)

    def list_player_stats(self, match_id: int | None = None, user_id: int | None = None) -> list[PlayerStat]:
        return self._select(
            "player_stats",
            lambda s: (match_id is None or s.match_id == match_id) and (user_id is None or s.user_id == user_id),
        )

    def create_player_stat(self, values: Mapping[str, Any]) -> PlayerStat:
        return self._insert("player_stats", values)

    def update_player_stat(self, stat_id: int, changes: Mapping[str, Any]) -> PlayerStat | None:
        return self._update("player_stats", stat_id, changes)

    def delete_player_stat(self, stat_id: int) -> bool:
        return self._delete("player_stats", stat_id)

    # ---------- Announcements and invitations ----------

    def get_announcement(self, announcement_id: int) -> Announcement | None:
        return self._get("announcements", announcement_id)

    def list_announcements(self, team_id: int, limit: int | None = None) -> list[Announcement]:
        return self._select(
            "announcements",
            lambda a: a.team_id == team_id,
            key=lambda a: (a.created_at, a.id),
            reverse=True,
            limit=limit,
        )

    def create_announcement(self, values: Mapping[str, Any]) -> Announcement:
        return self._insert("announcements", values)

    def update_announcement(self, announcement_id: int, changes: Mapping[str, Any]) -> Announcement | None:
        return self._update("announcements", announcement_id, changes)

    def delete_announcement(self, announcement_id: int) -> bool:
        return self._delete("announcements", announcement_id)

    def get_invitation(self, invitation_id: int) -> Invitation | None:
        return self._get("invitations", invitation_id)

    def get_invitation_by_email(self, team_id: int, email: str) -> Invitation | None:
        return self._first("invitations", lambda i: i.team_id == team_id and i.email == email)

    def list_invitations(self, team_id: int) -> list[Invitation]:
        return self._select("invitations", lambda i: i.team_id == team_id)

    def create_invitation(self, values: Mapping[str, Any]) -> Invitation:
        return self._insert("invitations", values)

    def update_invitation(self, invitation_id: int, changes: Mapping[str, Any]) -> Invitation | None:
        return self._update("invitations", invitation_id, changes)

    def delete_invitation(self, invitation_id: int) -> bool:
        return self._delete("invitations", invitation_id)

    # ---------- Seasons ----------

    def get_season(self, season_id: int) -> Season | None:
        return self._get("seasons", season_id)

    def get_active_season(self, team_id: int) -> Season | None:
        active = self._select(
            "seasons",
            lambda s: s.team_id == team_id and s.is_active,
            key=lambda s: (s.start_date, s.id),
            reverse=True,
            limit=1,
        )
        return active[0] if active else None

    def list_seasons(self, team_id: int) -> list[Season]:
        return self._select(
            "seasons",
            lambda s: s.team_id == team_id,
            key=lambda s: (s.start_date, s.id),
            reverse=True,
        )

    def create_season(self, values: Mapping[str, Any]) -> Season:
        return self._insert("seasons", values)

    def update_season(self, season_id: int, changes: Mapping[str, Any]) -> Season | None:
        return self._update("seasons", season_id, changes)

    def delete_season(self, season_id: int) -> bool:
        return self._delete("seasons", season_id)

    def deactivate_all_seasons(self, team_id: int) -> int:
        active = self._select("seasons", lambda s: s.team_id == team_id and s.is_active)
        for season in active:
            self._update("seasons", season.id, {"is_active": False})
        return len(active)

    # ---------- League classification ----------

    def get_classification(self, classification_id: int) -> LeagueClassification | None:
        return self._get("league_classification", classification_id)

    def list_classifications(self, team_id: int, season_id: int | None = None) -> list[LeagueClassification]:
        return self._select(
            "league_classification",
            lambda c: c.team_id == team_id and (season_id is None or c.season_id == season_id),
            key=lambda c: (c.position is None, c.position or 0, c.id),
        )

    def create_classification(self, values: Mapping[str, Any]) -> LeagueClassification:
        return self._insert("league_classification", values)

    def bulk_create_classifications(self, rows: Iterable[Mapping[str, Any]]) -> list[LeagueClassification]:
        return self._insert_many("league_classification", rows)

    def update_classification(self, classification_id: int, changes: Mapping[str, Any]) -> LeagueClassification | None:
        return self._update("league_classification", classification_id, changes)

    def delete_classification(self, classification_id: int) -> bool:
        return self._delete("league_classification", classification_id)

    def delete_team_classifications(self, team_id: int) -> int:
        ids = self._dependents("league_classification", "team_id", team_id)
        return sum(1 for row_id in ids if self._delete("league_classification", row_id))

    # ---------- Lineups ----------

    def get_match_lineup(self, match_id: int) -> MatchLineup | None:
        return self._first("match_lineups", lambda lineup: lineup.match_id == match_id)

    def create_match_lineup(self, values: Mapping[str, Any]) -> MatchLineup:
        return self._insert("match_lineups", values)

    def update_match_lineup(self, lineup_id: int, changes: Mapping[str, Any]) -> MatchLineup | None:
        return self._update("match_lineups", lineup_id, changes)

    def delete_match_lineup(self, lineup_id: int) -> bool:
        return self._delete("match_lineups", lineup_id)

    def get_team_lineup(self, team_id: int) -> TeamLineup | None:
        return self._first("team_lineups", lambda lineup: lineup.team_id == team_id)

    def create_team_lineup(self, values: Mapping[str, Any]) -> TeamLineup:
        return self._insert("team_lineups", values)

    def update_team_lineup(self, lineup_id: int, changes: Mapping[str, Any]) -> TeamLineup | None:
        return self._update("team_lineups", lineup_id, changes)

    def delete_team_lineup(self, lineup_id: int) -> bool:
        return self._delete("team_lineups", lineup_id)

    # ---------- Match timeline ----------

    def _by_minute(self, collection: str, match_id: int) -> list[Any]:
        return self._select(collection, lambda r: r.match_id == match_id, key=lambda r: (r.minute, r.id))

    def get_match_substitution(self, substitution_id: int) -> MatchSubstitution | None:
        return self._get("match_substitutions", substitution_id)

    def list_match_substitutions(self, match_id: int) -> list[MatchSubstitution]:
        return self._by_minute("match_substitutions", match_id)

    def create_match_substitution(self, values: Mapping[str, Any]) -> MatchSubstitution:
        return self._insert("match_substitutions", values)

    def update_match_substitution(self, substitution_id: int, changes: Mapping[str, Any]) -> MatchSubstitution | None:
        return self._update("match_substitutions", substitution_id, changes)

    def delete_match_substitution(self, substitution_id: int) -> bool:
        return self._delete("match_substitutions", substitution_id)

    def get_match_goal(self, goal_id: int) -> MatchGoal | None:
        return self._get("match_goals", goal_id)

    def list_match_goals(self, match_id: int) -> list[MatchGoal]:
        return self._by_minute("match_goals", match_id)

    def create_match_goal(self, values: Mapping[str, Any]) -> MatchGoal:
        return self._insert("match_goals", values)

    def update_match_goal(self, goal_id: int, changes: Mapping[str, Any]) -> MatchGoal | None:
        return self._update("match_goals", goal_id, changes)

    def delete_match_goal(self, goal_id: int) -> bool:
        return self._delete("match_goals", goal_id)

    def get_match_card(self, card_id: int) -> MatchCard | None:
        return self._get("match_cards", card_id)

    def list_match_cards(self, match_id: int) -> list[MatchCard]:
        return self._by_minute("match_cards", match_id)

    def create_match_card(self, values: Mapping[str, Any]) -> MatchCard:
        return self._insert("match_cards", values)

    def update_match_card(self, card_id: int, changes: Mapping[str, Any]) -> MatchCard | None:
        return self._update("match_cards", card_id, changes)

    def delete_match_card(self, card_id: int) -> bool:
        return self._delete("match_cards", card_id)

    def get_match_photo(self, photo_id: int) -> MatchPhoto | None:
        return self._get("match_photos", photo_id)

    def list_match_photos(self, match_id: int) -> list[MatchPhoto]:
        return self._select(
            "match_photos",
            lambda p: p.match_id == match_id,
            key=lambda p: (p.uploaded_at, p.id),
            reverse=True,
        )

    def create_match_photo(self, values: Mapping[str, Any]) -> MatchPhoto:
        return self._insert("match_photos", values)

    def update_match_photo(self, photo_id: int, changes: Mapping[str, Any]) -> MatchPhoto | None:
        return self._update("match_photos", photo_id, changes)

    def delete_match_photo(self, photo_id: int) -> bool:
        return self._delete("match_photos", photo_id)
