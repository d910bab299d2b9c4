"""
Data models for the team-management storage layer.
Domain objects only. No persistence or API logic.

Every record carries an integer id assigned by the active backend. Closed value
sets are str enums; records store the plain string value.
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_datetime(value: datetime) -> str:
    """ISO-8601 in UTC with fixed precision so stored timestamps sort as text."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def parse_datetime(value: str | datetime) -> datetime:
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


# ---------- Closed value sets ----------


class UserRole(str, Enum):
    SUPERUSER = "superuser"
    ADMIN = "admin"
    COACH = "coach"
    PLAYER = "player"
    COLABORADOR = "colaborador"


class MemberRole(str, Enum):
    """Role of a member inside one team."""
    ADMIN = "admin"
    COACH = "coach"
    PLAYER = "player"
    COLABORADOR = "colaborador"


class TeamCategory(str, Enum):
    PROFESSIONAL = "PROFESSIONAL"
    FEDERATED = "FEDERATED"
    AMATEUR = "AMATEUR"


class TeamType(str, Enum):
    ELEVEN_A_SIDE = "11-a-side"
    SEVEN_A_SIDE = "7-a-side"
    FUTSAL = "Futsal"


class MatchStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"


class MatchType(str, Enum):
    LEAGUE = "league"
    COPA = "copa"
    FRIENDLY = "friendly"


class EventType(str, Enum):
    TRAINING = "training"
    MATCH = "match"
    MEETING = "meeting"
    OTHER = "other"


class AttendanceStatus(str, Enum):
    CONFIRMED = "confirmed"
    DECLINED = "declined"
    PENDING = "pending"


class InvitationStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class GoalType(str, Enum):
    REGULAR = "regular"
    PENALTY = "penalty"
    FREE_KICK = "free_kick"
    OWN_GOAL = "own_goal"


class CardType(str, Enum):
    YELLOW = "yellow"
    RED = "red"
    SECOND_YELLOW = "second_yellow"


class ClaimStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# ---------- Accounts and teams ----------


@dataclass
class User:
    """
    An account profile. username and email (when set) are unique.
    password holds a hash, never plain text.
    """
    datetime_fields: ClassVar[tuple[str, ...]] = ("last_login_at",)
    choices: ClassVar[dict[str, type[Enum]]] = {"role": UserRole}

    id: int
    username: str
    password: str
    full_name: str
    role: str = UserRole.PLAYER.value
    first_name: str | None = None
    last_name: str | None = None
    profile_picture: str | None = "/default-avatar.png"
    position: str | None = None
    jersey_number: int | None = None
    email: str | None = None
    phone_number: str | None = None
    is_email_verified: bool = False
    last_login_at: datetime | None = None
    onboarding_completed: bool = False

    def to_dict(self) -> dict[str, Any]:
        return record_to_dict(self)


@dataclass
class Team:
    """
    A team. join_code is generated by the backend when not supplied.
    created_by_id is required on create; it is cleared if the creator is deleted.
    """
    choices: ClassVar[dict[str, type[Enum]]] = {"category": TeamCategory, "team_type": TeamType}

    id: int
    name: str
    created_by_id: int | None
    join_code: str | None = None
    logo: str | None = "/default-team-logo.png"
    division: str | None = None
    season_year: str | None = None
    category: str | None = None
    team_type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return record_to_dict(self)


@dataclass
class TeamMember:
    """
    A member of a team's roster. user_id stays unset until an account claims
    the member; full_name is the display name meanwhile.
    """
    datetime_fields: ClassVar[tuple[str, ...]] = ("created_at",)
    choices: ClassVar[dict[str, type[Enum]]] = {"role": MemberRole}

    id: int
    team_id: int
    full_name: str
    role: str = MemberRole.PLAYER.value
    created_by_id: int | None = None
    user_id: int | None = None
    is_verified: bool = False
    position: str | None = None
    jersey_number: int | None = None
    profile_picture: str | None = None
    created_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return record_to_dict(self)


@dataclass
class MemberClaim:
    """
    A user asking to be linked to an unclaimed roster entry. An admin or coach
    reviews it; approving does not itself set TeamMember.user_id.
    """
    datetime_fields: ClassVar[tuple[str, ...]] = ("requested_at", "reviewed_at")
    choices: ClassVar[dict[str, type[Enum]]] = {"status": ClaimStatus}

    id: int
    team_id: int
    team_member_id: int
    user_id: int
    status: str = ClaimStatus.PENDING.value
    requested_at: datetime = field(default_factory=utcnow)
    reviewed_at: datetime | None = None
    reviewed_by_id: int | None = None
    rejection_reason: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return record_to_dict(self)


# ---------- Matches ----------


@dataclass
class Match:
    datetime_fields: ClassVar[tuple[str, ...]] = ("match_date",)
    choices: ClassVar[dict[str, type[Enum]]] = {"status": MatchStatus, "match_type": MatchType}

    id: int
    team_id: int
    opponent_name: str
    match_date: datetime
    location: str
    is_home: bool
    season_id: int | None = None
    status: str = MatchStatus.SCHEDULED.value
    match_type: str = MatchType.FRIENDLY.value
    opponent_logo: str | None = None
    goals_scored: int | None = None
    goals_conceded: int | None = None
    notes: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return record_to_dict(self)


@dataclass
class MatchLineup:
    """Starting eleven and bench for one match. player ids are TeamMember ids."""
    datetime_fields: ClassVar[tuple[str, ...]] = ("created_at",)
    json_fields: ClassVar[tuple[str, ...]] = ("player_ids", "bench_player_ids", "position_mapping")

    id: int
    match_id: int
    team_id: int
    player_ids: list[int]
    bench_player_ids: list[int] = field(default_factory=list)
    formation: str | None = None
    position_mapping: dict[str, Any] | None = None
    created_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return record_to_dict(self)


@dataclass
class TeamLineup:
    """A team's default formation; at most one per team."""
    datetime_fields: ClassVar[tuple[str, ...]] = ("created_at", "updated_at")
    json_fields: ClassVar[tuple[str, ...]] = ("position_mapping",)

    id: int
    team_id: int
    formation: str
    position_mapping: dict[str, Any] | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return record_to_dict(self)


@dataclass
class MatchSubstitution:
    id: int
    match_id: int
    player_in_id: int
    player_out_id: int
    minute: int
    reason: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return record_to_dict(self)


@dataclass
class MatchGoal:
    choices: ClassVar[dict[str, type[Enum]]] = {"type": GoalType}

    id: int
    match_id: int
    scorer_id: int
    minute: int
    assist_id: int | None = None
    type: str = GoalType.REGULAR.value
    description: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return record_to_dict(self)


@dataclass
class MatchCard:
    choices: ClassVar[dict[str, type[Enum]]] = {"type": CardType}

    id: int
    match_id: int
    player_id: int
    type: str
    minute: int
    reason: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return record_to_dict(self)


@dataclass
class MatchPhoto:
    datetime_fields: ClassVar[tuple[str, ...]] = ("uploaded_at",)

    id: int
    match_id: int
    url: str
    caption: str | None = None
    uploaded_at: datetime = field(default_factory=utcnow)
    uploaded_by_id: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return record_to_dict(self)


@dataclass
class PlayerStat:
    """Per-match statistics of one user; one row per (match, user)."""
    id: int
    match_id: int
    user_id: int
    goals: int = 0
    assists: int = 0
    yellow_cards: int = 0
    red_cards: int = 0
    minutes_played: int | None = None
    performance: int = 0  # rating 1-10, 0 = unrated

    def to_dict(self) -> dict[str, Any]:
        return record_to_dict(self)


# ---------- Events ----------


@dataclass
class Event:
    datetime_fields: ClassVar[tuple[str, ...]] = ("start_time", "end_time")
    choices: ClassVar[dict[str, type[Enum]]] = {"type": EventType}

    id: int
    team_id: int
    title: str
    type: str
    start_time: datetime
    location: str
    end_time: datetime | None = None
    description: str | None = None
    created_by_id: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return record_to_dict(self)


@dataclass
class Attendance:
    """One user's answer for one event."""
    choices: ClassVar[dict[str, type[Enum]]] = {"status": AttendanceStatus}

    id: int
    event_id: int
    user_id: int
    status: str = AttendanceStatus.PENDING.value

    def to_dict(self) -> dict[str, Any]:
        return record_to_dict(self)


# ---------- Team communication ----------


@dataclass
class Announcement:
    datetime_fields: ClassVar[tuple[str, ...]] = ("created_at",)

    id: int
    team_id: int
    title: str
    content: str
    created_at: datetime = field(default_factory=utcnow)
    created_by_id: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return record_to_dict(self)


@dataclass
class Invitation:
    datetime_fields: ClassVar[tuple[str, ...]] = ("created_at",)
    choices: ClassVar[dict[str, type[Enum]]] = {"role": MemberRole, "status": InvitationStatus}

    id: int
    team_id: int
    email: str
    role: str = MemberRole.PLAYER.value
    status: str = InvitationStatus.PENDING.value
    created_at: datetime = field(default_factory=utcnow)
    created_by_id: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return record_to_dict(self)


# ---------- Seasons and league tables ----------


@dataclass
class Season:
    """
    One season of a team. Whether several seasons may be active at once is a
    caller decision; see Repository.deactivate_all_seasons.
    """
    datetime_fields: ClassVar[tuple[str, ...]] = ("start_date", "end_date", "created_at")

    id: int
    team_id: int
    name: str
    start_date: datetime
    end_date: datetime
    is_active: bool = False
    description: str | None = None
    created_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return record_to_dict(self)


@dataclass
class LeagueClassification:
    """One row of a league table as tracked by a team (the row is another club)."""
    datetime_fields: ClassVar[tuple[str, ...]] = ("created_at", "updated_at")

    id: int
    team_id: int
    external_team_name: str
    season_id: int | None = None
    points: int = 0
    position: int | None = None
    games_played: int = 0
    games_won: int = 0
    games_drawn: int = 0
    games_lost: int = 0
    goals_for: int = 0
    goals_against: int = 0
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return record_to_dict(self)


# ---------- Collection registry ----------

# Collection name (snapshot file stem and SQL table) -> record type
COLLECTIONS: dict[str, type] = {
    "users": User,
    "teams": Team,
    "team_members": TeamMember,
    "member_claims": MemberClaim,
    "seasons": Season,
    "matches": Match,
    "events": Event,
    "attendance": Attendance,
    "player_stats": PlayerStat,
    "announcements": Announcement,
    "invitations": Invitation,
    "league_classification": LeagueClassification,
    "match_lineups": MatchLineup,
    "team_lineups": TeamLineup,
    "match_substitutions": MatchSubstitution,
    "match_goals": MatchGoal,
    "match_cards": MatchCard,
    "match_photos": MatchPhoto,
}


def field_names(cls: type) -> list[str]:
    return [f.name for f in fields(cls)]


def record_to_dict(record: Any) -> dict[str, Any]:
    """Plain JSON-friendly dict; datetimes become ISO-8601 strings."""
    date_names = getattr(record, "datetime_fields", ())
    out: dict[str, Any] = {}
    for f in fields(record):
        value = getattr(record, f.name)
        if f.name in date_names and value is not None:
            value = format_datetime(value)
        elif isinstance(value, list):
            value = list(value)
        elif isinstance(value, dict):
            value = dict(value)
        out[f.name] = value
    return out


def record_from_dict(cls: type, data: dict[str, Any]) -> Any:
    """Inverse of record_to_dict. Missing optional keys take their defaults."""
    date_names = getattr(cls, "datetime_fields", ())
    known = set(field_names(cls))
    kwargs: dict[str, Any] = {}
    for key, value in data.items():
        if key not in known:
            continue
        if key in date_names and value is not None:
            value = parse_datetime(value)
        kwargs[key] = value
    return cls(**kwargs)
