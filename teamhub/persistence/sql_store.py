"""
Relational store: the repository operations against SQLite tables.

Integrity rules live in the schema (keys, foreign-key actions, CHECK
constraints); sqlite3 errors are translated into the storage taxonomy before
they leave this module. One connection per operation.
"""
from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from dataclasses import fields, replace
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
    format_datetime,
    parse_datetime,
)

from .db import get_connection, init_db, parse_database_url
from .errors import (
    CascadeError,
    ConflictError,
    InternalStorageError,
    StorageError,
    translate_integrity_error,
)
from .invariants import UNIQUE_KEYS, restricting_rules
from .records import build_record, checked_join_code, merge_record, record_from_row, record_to_row
from .sessions import SessionStore, SqlSessionStore

logger = logging.getLogger(__name__)

JOIN_CODE_ATTEMPTS = 10
_JOIN_CODE_CONFLICT = UNIQUE_KEYS["teams"][0].message


class SqlStore:
    """Repository backed by a SQLite database file."""

    def __init__(self, database_url: str, session_store: SessionStore | None = None) -> None:
        self.db_path: Path = parse_database_url(database_url)
        init_db(self.db_path)
        self.session_store = session_store if session_store is not None else SqlSessionStore(self.db_path)

    def close(self) -> None:
        """Connections are per operation; nothing stays open."""
        logger.debug("SQL store at %s closed", self.db_path)

    # ---------- Connection and error translation ----------

    @contextmanager
    def _connect(
        self,
        collection: str | None = None,
        values: Mapping[str, Any] | None = None,
        deleting: bool = False,
    ) -> Iterator[sqlite3.Connection]:
        conn = get_connection(self.db_path)
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise self._translate(exc, collection, values, deleting) from exc
        finally:
            conn.close()

    def _translate(
        self,
        exc: sqlite3.Error,
        collection: str | None,
        values: Mapping[str, Any] | None,
        deleting: bool,
    ) -> StorageError:
        if deleting and isinstance(exc, sqlite3.IntegrityError):
            logger.warning("Delete from %s blocked by a dependent row: %s", collection, exc)
            return CascadeError()
        error = translate_integrity_error(exc, collection, values, self._parent_exists)
        if isinstance(error, InternalStorageError):
            logger.exception("Database operation on %s failed", collection)
        else:
            logger.warning("Write to %s rejected: %s", collection, error.message)
        return error

    def _parent_exists(self, parent: str, record_id: int) -> bool:
        conn = get_connection(self.db_path)
        try:
            return conn.execute(f"SELECT 1 FROM {parent} WHERE id = ?", (record_id,)).fetchone() is not None
        finally:
            conn.close()

    # ---------- Generic operations ----------

    def _select(
        self,
        collection: str,
        where: str = "",
        args: tuple = (),
        order: str = "id",
        limit: int | None = None,
    ) -> list[Any]:
        sql = f"SELECT * FROM {collection}"
        if where:
            sql += f" WHERE {where}"
        sql += f" ORDER BY {order}"
        if limit is not None:
            sql += " LIMIT ?"
            args = args + (max(limit, 0),)
        with self._connect(collection) as conn:
            rows = conn.execute(sql, args).fetchall()
        cls = COLLECTIONS[collection]
        return [record_from_row(cls, row) for row in rows]

    def _first(self, collection: str, where: str, args: tuple, order: str = "id") -> Any | None:
        rows = self._select(collection, where, args, order=order, limit=1)
        return rows[0] if rows else None

    def _get(self, collection: str, record_id: int) -> Any | None:
        return self._first(collection, "id = ?", (record_id,))

    def _insert(self, collection: str, values: Mapping[str, Any], prepare: Callable[[Any], Any] | None = None) -> Any:
        record = build_record(COLLECTIONS[collection], None, values)
        if prepare is not None:
            record = prepare(record)
        return self._insert_record(collection, record)

    def _insert_record(self, collection: str, record: Any) -> Any:
        row = record_to_row(record)
        row.pop("id")
        cols = list(row)
        sql = f"INSERT INTO {collection} ({', '.join(cols)}) VALUES ({', '.join('?' for _ in cols)})"
        with self._connect(collection, row) as conn:
            cur = conn.execute(sql, [row[c] for c in cols])
        logger.debug("Created %s %d", collection, cur.lastrowid)
        return replace(record, id=cur.lastrowid)

    def _insert_many(self, collection: str, batch: Iterable[Mapping[str, Any]]) -> list[Any]:
        """One transaction: either every row is inserted or none is."""
        records = [build_record(COLLECTIONS[collection], None, values) for values in batch]
        if not records:
            return []
        created = []
        current: dict[str, Any] = {}
        with self._connect(collection, current) as conn:
            for record in records:
                row = record_to_row(record)
                row.pop("id")
                current.clear()
                current.update(row)
                cols = list(row)
                cur = conn.execute(
                    f"INSERT INTO {collection} ({', '.join(cols)}) VALUES ({', '.join('?' for _ in cols)})",
                    [row[c] for c in cols],
                )
                created.append(replace(record, id=cur.lastrowid))
        logger.debug("Created %d %s", len(created), collection)
        return created

    def _update(
        self,
        collection: str,
        record_id: int,
        changes: Mapping[str, Any],
        prepare: Callable[[Any], Any] | None = None,
    ) -> Any | None:
        current = self._get(collection, record_id)
        if current is None:
            return None
        updated = merge_record(current, changes)
        if prepare is not None:
            updated = prepare(updated)
        changed = [f.name for f in fields(updated) if getattr(updated, f.name) != getattr(current, f.name)]
        if not changed:
            return updated
        row = record_to_row(updated)
        assignments = ", ".join(f"{name} = ?" for name in changed)
        with self._connect(collection, row) as conn:
            cur = conn.execute(
                f"UPDATE {collection} SET {assignments} WHERE id = ?",
                [row[name] for name in changed] + [record_id],
            )
        if cur.rowcount == 0:
            return None
        return updated

    def _delete(self, collection: str, record_id: int) -> bool:
        """Dependents go through the schema's ON DELETE actions; restricting references refuse the delete."""
        with self._connect(collection, deleting=True) as conn:
            for rule in restricting_rules(collection):
                blocked = conn.execute(
                    f"SELECT 1 FROM {rule.child} WHERE {rule.field} = ? LIMIT 1", (record_id,)
                ).fetchone()
                if blocked is not None:
                    logger.info("Refusing to delete %s %d: still referenced by %s", collection, record_id, rule.child)
                    return False
            cur = conn.execute(f"DELETE FROM {collection} WHERE id = ?", (record_id,))
        if cur.rowcount:
            logger.debug("Deleted %s %d", collection, record_id)
        return cur.rowcount > 0

    def _execute(self, collection: str, sql: str, args: tuple) -> int:
        with self._connect(collection) as conn:
            cur = conn.execute(sql, args)
        return cur.rowcount

    # ---------- Users ----------

    def get_user(self, user_id: int) -> User | None:
        return self._get("users", user_id)

    def get_user_by_username(self, username: str) -> User | None:
        return self._first("users", "username = ?", (username,))

    def get_user_by_email(self, email: str) -> User | None:
        return self._first("users", "email = ?", (email,))

    def list_users(self, limit: int | None = None) -> list[User]:
        return self._select("users", limit=limit)

    def create_user(self, values: Mapping[str, Any]) -> User:
        return self._insert("users", values)

    def update_user(self, user_id: int, changes: Mapping[str, Any]) -> User | None:
        return self._update("users", user_id, changes)

    def delete_user(self, user_id: int) -> bool:
        return self._delete("users", user_id)

    # ---------- Teams ----------

    def get_team(self, team_id: int) -> Team | None:
        return self._get("teams", team_id)

    def get_team_by_join_code(self, join_code: str) -> Team | None:
        return self._first("teams", "join_code = ?", (normalize_join_code(join_code),))

    def list_teams(self, limit: int | None = None) -> list[Team]:
        return self._select("teams", limit=limit)

    def list_teams_by_user(self, user_id: int) -> list[Team]:
        return self._select(
            "teams",
            "id IN (SELECT team_id FROM team_members WHERE user_id = ?)",
            (user_id,),
        )

    def create_team(self, values: Mapping[str, Any]) -> Team:
        team = checked_join_code(build_record(Team, None, values))
        if team.join_code is not None:
            return self._insert_record("teams", team)
        for _ in range(JOIN_CODE_ATTEMPTS):
            try:
                return self._insert_record("teams", replace(team, join_code=generate_join_code()))
            except ConflictError as exc:
                if exc.message != _JOIN_CODE_CONFLICT:
                    raise
        logger.error("Could not allocate a unique join code after %d attempts", JOIN_CODE_ATTEMPTS)
        raise InternalStorageError("could not allocate a unique join code")

    def update_team(self, team_id: int, changes: Mapping[str, Any]) -> Team | None:
        return self._update("teams", team_id, changes, prepare=lambda t: checked_join_code(t, required=True))

    def delete_team(self, team_id: int) -> bool:
        return self._delete("teams", team_id)

    # ---------- Team members ----------

    def get_team_member(self, member_id: int) -> TeamMember | None:
        return self._get("team_members", member_id)

    def get_team_member_by_user(self, team_id: int, user_id: int) -> TeamMember | None:
        return self._first("team_members", "team_id = ? AND user_id = ?", (team_id, user_id))

    def list_team_members(self, team_id: int) -> list[TeamMember]:
        return self._select("team_members", "team_id = ?", (team_id,))

    def list_memberships(self, user_id: int) -> list[TeamMember]:
        return self._select("team_members", "user_id = ?", (user_id,))

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
        where, args = "team_id = ?", (team_id,)
        if status is not None:
            where, args = where + " AND status = ?", args + (getattr(status, "value", status),)
        return self._select("member_claims", where, args, order="requested_at DESC, id DESC")

    def list_member_claims_by_user(self, user_id: int) -> list[MemberClaim]:
        return self._select("member_claims", "user_id = ?", (user_id,), order="requested_at DESC, id DESC")

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
        where, args = "team_id = ?", (team_id,)
        if season_id is not None:
            where, args = where + " AND season_id = ?", args + (season_id,)
        return self._select("matches", where, args, order="match_date DESC, id DESC", limit=limit)

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
        where, args = "team_id = ?", (team_id,)
        if upcoming_after is not None:
            where, args = where + " AND start_time >= ?", args + (format_datetime(parse_datetime(upcoming_after)),)
        return self._select("events", where, args, order="start_time, id", limit=limit)

    def create_event(self, values: Mapping[str, Any]) -> Event:
        return self._insert("events", values)

    def update_event(self, event_id: int, changes: Mapping[str, Any]) -> Event | None:
        return self._update("events", event_id, changes)

    def delete_event(self, event_id: int) -> bool:
        return self._delete("events", event_id)

    def get_attendance(self, attendance_id: int) -> Attendance | None:
        return self._get("attendance", attendance_id)

    def get_attendance_for_user(self, event_id: int, user_id: int) -> Attendance | None:
        return self._first("attendance", "event_id = ? AND user_id = ?", (event_id, user_id))

    def list_attendance(self, event_id: int | None = None, user_id: int | None = None) -> list[Attendance]:
        clauses, args = [], []
        if event_id is not None:
            clauses.append("event_id = ?")
            args.append(event_id)
        if user_id is not None:
            clauses.append("user_id = ?")
            args.append(user_id)
        return self._select("attendance", " AND ".join(clauses), tuple(args))

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
        clauses, args = [], []
        if match_id is not None:
            clauses.append("match_id = ?")
            args.append(match_id)
        if user_id is not None:
            clauses.append("user_id = ?")
            args.append(user_id)
        return self._select("player_stats", " AND ".join(clauses), tuple(args))

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
        return self._select("announcements", "team_id = ?", (team_id,), order="created_at DESC, id DESC", limit=limit)

    def create_announcement(self, values: Mapping[str, Any]) -> Announcement:
        return self._insert("announcements", values)

    def update_announcement(self, announcement_id: int, changes: Mapping[str, Any]) -> Announcement | None:
        return self._update("announcements", announcement_id, changes)

    def delete_announcement(self, announcement_id: int) -> bool:
        return self._delete("announcements", announcement_id)

    def get_invitation(self, invitation_id: int) -> Invitation | None:
        return self._get("invitations", invitation_id)

    def get_invitation_by_email(self, team_id: int, email: str) -> Invitation | None:
        return self._first("invitations", "team_id = ? AND email = ?", (team_id, email))

    def list_invitations(self, team_id: int) -> list[Invitation]:
        return self._select("invitations", "team_id = ?", (team_id,))

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
        return self._first(
            "seasons", "team_id = ? AND is_active = 1", (team_id,), order="start_date DESC, id DESC"
        )

    def list_seasons(self, team_id: int) -> list[Season]:
        return self._select("seasons", "team_id = ?", (team_id,), order="start_date DESC, id DESC")

    def create_season(self, values: Mapping[str, Any]) -> Season:
        return self._insert("seasons", values)

    def update_season(self, season_id: int, changes: Mapping[str, Any]) -> Season | None:
        return self._update("seasons", season_id, changes)

    def delete_season(self, season_id: int) -> bool:
        return self._delete("seasons", season_id)

    def deactivate_all_seasons(self, team_id: int) -> int:
        return self._execute(
            "seasons", "UPDATE seasons SET is_active = 0 WHERE team_id = ? AND is_active = 1", (team_id,)
        )

    # ---------- League classification ----------

    def get_classification(self, classification_id: int) -> LeagueClassification | None:
        return self._get("league_classification", classification_id)

    def list_classifications(self, team_id: int, season_id: int | None = None) -> list[LeagueClassification]:
        where, args = "team_id = ?", (team_id,)
        if season_id is not None:
            where, args = where + " AND season_id = ?", args + (season_id,)
        return self._select("league_classification", where, args, order="position IS NULL, position, id")

    def create_classification(self, values: Mapping[str, Any]) -> LeagueClassification:
        return self._insert("league_classification", values)

    def bulk_create_classifications(self, rows: Iterable[Mapping[str, Any]]) -> list[LeagueClassification]:
        return self._insert_many("league_classification", rows)

    def update_classification(self, classification_id: int, changes: Mapping[str, Any]) -> LeagueClassification | None:
        return self._update("league_classification", classification_id, changes)

    def delete_classification(self, classification_id: int) -> bool:
        return self._delete("league_classification", classification_id)

    def delete_team_classifications(self, team_id: int) -> int:
        return self._execute("league_classification", "DELETE FROM league_classification WHERE team_id = ?", (team_id,))

    # ---------- Lineups ----------

    def get_match_lineup(self, match_id: int) -> MatchLineup | None:
        return self._first("match_lineups", "match_id = ?", (match_id,))

    def create_match_lineup(self, values: Mapping[str, Any]) -> MatchLineup:
        return self._insert("match_lineups", values)

    def update_match_lineup(self, lineup_id: int, changes: Mapping[str, Any]) -> MatchLineup | None:
        return self._update("match_lineups", lineup_id, changes)

    def delete_match_lineup(self, lineup_id: int) -> bool:
        return self._delete("match_lineups", lineup_id)

    def get_team_lineup(self, team_id: int) -> TeamLineup | None:
        return self._first("team_lineups", "team_id = ?", (team_id,))

    def create_team_lineup(self, values: Mapping[str, Any]) -> TeamLineup:
        return self._insert("team_lineups", values)

    def update_team_lineup(self, lineup_id: int, changes: Mapping[str, Any]) -> TeamLineup | None:
        return self._update("team_lineups", lineup_id, changes)

    def delete_team_lineup(self, lineup_id: int) -> bool:
        return self._delete("team_lineups", lineup_id)

    # ---------- Match timeline ----------

    def _by_minute(self, collection: str, match_id: int) -> list[Any]:
        return self._select(collection, "match_id = ?", (match_id,), order="minute, id")

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
        return self._select("match_photos", "match_id = ?", (match_id,), order="uploaded_at DESC, id DESC")

    def create_match_photo(self, values: Mapping[str, Any]) -> MatchPhoto:
        return self._insert("match_photos", values)

    def update_match_photo(self, photo_id: int, changes: Mapping[str, Any]) -> MatchPhoto | None:
        return self._update("match_photos", photo_id, changes)

    def delete_match_photo(self, photo_id: int) -> bool:
        return self._delete("match_photos", photo_id)
