"""
Entity-relationship invariants shared by both backends, declared once as data.

DELETE_RULES is the single description of what happens to dependents when a row
is deleted. The snapshot store walks it in order; the relational schema mirrors
it with ON DELETE actions (see schema.py). Foreign-key references are derived
from the same rules, so adding an entity means adding its rules here.
"""
from __future__ import annotations

from dataclasses import dataclass

CASCADE = "cascade"
SET_NULL = "set_null"
RESTRICT = "restrict"


@dataclass(frozen=True)
class DeleteRule:
    """Rows of `child` whose `field` points at the deleted parent get `action`."""
    child: str
    field: str
    action: str = CASCADE


@dataclass(frozen=True)
class Reference:
    field: str
    parent: str


@dataclass(frozen=True)
class UniqueKey:
    """
    A uniqueness constraint. Keys containing a null are not compared unless
    null_matches is set, in which case null is treated as an ordinary value.
    index names the SQL unique index enforcing it.
    """
    fields: tuple[str, ...]
    message: str
    index: str
    null_matches: bool = False


# Parent collection -> ordered rules applied before the parent row is removed.
DELETE_RULES: dict[str, tuple[DeleteRule, ...]] = {
    "users": (
        DeleteRule("team_members", "user_id"),
        DeleteRule("member_claims", "user_id"),
        DeleteRule("attendance", "user_id"),
        DeleteRule("player_stats", "user_id"),
        DeleteRule("teams", "created_by_id", SET_NULL),
        DeleteRule("team_members", "created_by_id", SET_NULL),
        DeleteRule("member_claims", "reviewed_by_id", SET_NULL),
        DeleteRule("events", "created_by_id", SET_NULL),
        DeleteRule("announcements", "created_by_id", SET_NULL),
        DeleteRule("invitations", "created_by_id", SET_NULL),
        DeleteRule("match_photos", "uploaded_by_id", SET_NULL),
    ),
    "teams": (
        DeleteRule("team_members", "team_id"),
        DeleteRule("member_claims", "team_id"),
        DeleteRule("matches", "team_id"),
        DeleteRule("match_lineups", "team_id"),
        DeleteRule("events", "team_id"),
        DeleteRule("announcements", "team_id"),
        DeleteRule("league_classification", "team_id"),
        DeleteRule("invitations", "team_id"),
        DeleteRule("team_lineups", "team_id"),
        DeleteRule("seasons", "team_id"),
    ),
    "team_members": (
        DeleteRule("member_claims", "team_member_id"),
        DeleteRule("match_goals", "scorer_id"),
        DeleteRule("match_goals", "assist_id", SET_NULL),
        DeleteRule("match_cards", "player_id"),
        DeleteRule("match_substitutions", "player_in_id"),
        DeleteRule("match_substitutions", "player_out_id"),
    ),
    "matches": (
        DeleteRule("match_lineups", "match_id"),
        DeleteRule("match_substitutions", "match_id"),
        DeleteRule("match_goals", "match_id"),
        DeleteRule("match_cards", "match_id"),
        DeleteRule("match_photos", "match_id"),
        DeleteRule("player_stats", "match_id"),
    ),
    "events": (
        DeleteRule("attendance", "event_id"),
    ),
    "seasons": (
        DeleteRule("league_classification", "season_id", RESTRICT),
        DeleteRule("matches", "season_id", RESTRICT),
    ),
}


UNIQUE_KEYS: dict[str, tuple[UniqueKey, ...]] = {
    "users": (
        UniqueKey(("username",), "username already exists", "ux_users_username"),
        UniqueKey(("email",), "email already exists", "ux_users_email"),
    ),
    "teams": (
        UniqueKey(("join_code",), "join code already exists", "ux_teams_join_code"),
    ),
    "team_members": (
        UniqueKey(("team_id", "user_id"), "team member already exists", "ux_team_members_team_user"),
    ),
    "attendance": (
        UniqueKey(("event_id", "user_id"), "attendance already recorded for this user", "ux_attendance_event_user"),
    ),
    "player_stats": (
        UniqueKey(("match_id", "user_id"), "player stats already recorded for this match", "ux_player_stats_match_user"),
    ),
    "invitations": (
        UniqueKey(("team_id", "email"), "invitation already exists for this email", "ux_invitations_team_email"),
    ),
    "league_classification": (
        UniqueKey(
            ("team_id", "external_team_name", "season_id"),
            "classification already exists",
            "ux_league_classification_team_name_season",
            null_matches=True,
        ),
    ),
    "match_lineups": (
        UniqueKey(("match_id",), "match lineup already exists", "ux_match_lineups_match"),
    ),
    "team_lineups": (
        UniqueKey(("team_id",), "team lineup already exists", "ux_team_lineups_team"),
    ),
}


ENTITY_LABELS: dict[str, str] = {
    "users": "user",
    "teams": "team",
    "team_members": "team member",
    "member_claims": "member claim",
    "seasons": "season",
    "matches": "match",
    "events": "event",
    "attendance": "attendance",
    "player_stats": "player stat",
    "announcements": "announcement",
    "invitations": "invitation",
    "league_classification": "classification",
    "match_lineups": "match lineup",
    "team_lineups": "team lineup",
    "match_substitutions": "substitution",
    "match_goals": "goal",
    "match_cards": "card",
    "match_photos": "photo",
}


def references(collection: str) -> list[Reference]:
    """Foreign-key fields of a collection, in declaration order, deduplicated."""
    seen: list[Reference] = []
    for parent, rules in DELETE_RULES.items():
        for rule in rules:
            ref = Reference(rule.field, parent)
            if rule.child == collection and ref not in seen:
                seen.append(ref)
    return seen


def restricting_rules(collection: str) -> list[DeleteRule]:
    return [r for r in DELETE_RULES.get(collection, ()) if r.action == RESTRICT]


def label(collection: str) -> str:
    return ENTITY_LABELS.get(collection, collection)


def missing_parent_message(parent: str) -> str:
    return f"referenced {label(parent)} does not exist"
