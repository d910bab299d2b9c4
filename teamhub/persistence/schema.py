"""
SQLite schema for team-management entities.
Each table created with IF NOT EXISTS; no migrations.

Foreign-key actions mirror DELETE_RULES in invariants.py. Season references use
the default NO ACTION rather than RESTRICT: NO ACTION is checked at the end of
the statement, so a team delete that cascades to both a season and the matches
pointing at it succeeds.
"""
from __future__ import annotations

from enum import Enum

from teamhub.models import (
    AttendanceStatus,
    CardType,
    ClaimStatus,
    EventType,
    GoalType,
    InvitationStatus,
    MatchStatus,
    MatchType,
    MemberRole,
    TeamCategory,
    TeamType,
    UserRole,
)


def _in(column: str, enum: type[Enum], nullable: bool = False) -> str:
    values = ", ".join(f"'{member.value}'" for member in enum)
    check = f"{column} IN ({values})"
    if nullable:
        check = f"{column} IS NULL OR {check}"
    return f"CHECK ({check})"


def _bool(column: str) -> str:
    return f"CHECK ({column} IN (0, 1))"


def users_schema() -> str:
    return f"""
    CREATE TABLE IF NOT EXISTS users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        username TEXT NOT NULL,
        password TEXT NOT NULL,
        full_name TEXT NOT NULL,
        role TEXT NOT NULL DEFAULT 'player' {_in("role", UserRole)},
        first_name TEXT,
        last_name TEXT,
        profile_picture TEXT DEFAULT '/default-avatar.png',
        position TEXT,
        jersey_number INTEGER,
        email TEXT,
        phone_number TEXT,
        is_email_verified INTEGER NOT NULL DEFAULT 0 {_bool("is_email_verified")},
        last_login_at TEXT,
        onboarding_completed INTEGER NOT NULL DEFAULT 0 {_bool("onboarding_completed")}
    );
    CREATE UNIQUE INDEX IF NOT EXISTS ux_users_username ON users(username);
    CREATE UNIQUE INDEX IF NOT EXISTS ux_users_email ON users(email);
    """


def teams_schema() -> str:
    """join_code is generated by the store; created_by_id is cleared when the creator is deleted."""
    return f"""
    CREATE TABLE IF NOT EXISTS teams (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        created_by_id INTEGER REFERENCES users(id) ON DELETE SET NULL,
        join_code TEXT,
        logo TEXT DEFAULT '/default-team-logo.png',
        division TEXT,
        season_year TEXT,
        category TEXT {_in("category", TeamCategory, nullable=True)},
        team_type TEXT {_in("team_type", TeamType, nullable=True)}
    );
    CREATE UNIQUE INDEX IF NOT EXISTS ux_teams_join_code ON teams(join_code);
    """


def team_members_schema() -> str:
    """user_id NULL = roster placeholder not yet claimed by an account."""
    return f"""
    CREATE TABLE IF NOT EXISTS team_members (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        team_id INTEGER NOT NULL REFERENCES teams(id) ON DELETE CASCADE,
        full_name TEXT NOT NULL,
        role TEXT NOT NULL DEFAULT 'player' {_in("role", MemberRole)},
        created_by_id INTEGER REFERENCES users(id) ON DELETE SET NULL,
        user_id INTEGER REFERENCES users(id) ON DELETE CASCADE,
        is_verified INTEGER NOT NULL DEFAULT 0 {_bool("is_verified")},
        position TEXT,
        jersey_number INTEGER,
        profile_picture TEXT,
        created_at TEXT NOT NULL
    );
    CREATE UNIQUE INDEX IF NOT EXISTS ux_team_members_team_user ON team_members(team_id, user_id);
    CREATE INDEX IF NOT EXISTS ix_team_members_user ON team_members(user_id);
    """


def member_claims_schema() -> str:
    return f"""
    CREATE TABLE IF NOT EXISTS member_claims (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        team_id INTEGER NOT NULL REFERENCES teams(id) ON DELETE CASCADE,
        team_member_id INTEGER NOT NULL REFERENCES team_members(id) ON DELETE CASCADE,
        user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        status TEXT NOT NULL DEFAULT 'pending' {_in("status", ClaimStatus)},
        requested_at TEXT NOT NULL,
        reviewed_at TEXT,
        reviewed_by_id INTEGER REFERENCES users(id) ON DELETE SET NULL,
        rejection_reason TEXT
    );
    CREATE INDEX IF NOT EXISTS ix_member_claims_team ON member_claims(team_id);
    CREATE INDEX IF NOT EXISTS ix_member_claims_user ON member_claims(user_id);
    CREATE INDEX IF NOT EXISTS ix_member_claims_member ON member_claims(team_member_id);
    """


def seasons_schema() -> str:
    return f"""
    CREATE TABLE IF NOT EXISTS seasons (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        team_id INTEGER NOT NULL REFERENCES teams(id) ON DELETE CASCADE,
        name TEXT NOT NULL,
        start_date TEXT NOT NULL,
        end_date TEXT NOT NULL,
        is_active INTEGER NOT NULL DEFAULT 0 {_bool("is_active")},
        description TEXT,
        created_at TEXT NOT NULL
    );
    CREATE INDEX IF NOT EXISTS ix_seasons_team ON seasons(team_id);
    """


def matches_schema() -> str:
    return f"""
    CREATE TABLE IF NOT EXISTS matches (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        team_id INTEGER NOT NULL REFERENCES teams(id) ON DELETE CASCADE,
        opponent_name TEXT NOT NULL,
        match_date TEXT NOT NULL,
        location TEXT NOT NULL,
        is_home INTEGER NOT NULL {_bool("is_home")},
        season_id INTEGER REFERENCES seasons(id),
        status TEXT NOT NULL DEFAULT 'scheduled' {_in("status", MatchStatus)},
        match_type TEXT NOT NULL DEFAULT 'friendly' {_in("match_type", MatchType)},
        opponent_logo TEXT,
        goals_scored INTEGER,
        goals_conceded INTEGER,
        notes TEXT
    );
    CREATE INDEX IF NOT EXISTS ix_matches_team_date ON matches(team_id, match_date);
    CREATE INDEX IF NOT EXISTS ix_matches_season ON matches(season_id);
    """


def events_schema() -> str:
    return f"""
    CREATE TABLE IF NOT EXISTS events (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        team_id INTEGER NOT NULL REFERENCES teams(id) ON DELETE CASCADE,
        title TEXT NOT NULL,
        type TEXT NOT NULL {_in("type", EventType)},
        start_time TEXT NOT NULL,
        location TEXT NOT NULL,
        end_time TEXT,
        description TEXT,
        created_by_id INTEGER REFERENCES users(id) ON DELETE SET NULL
    );
    CREATE INDEX IF NOT EXISTS ix_events_team_start ON events(team_id, start_time);
    """


def attendance_schema() -> str:
    return f"""
    CREATE TABLE IF NOT EXISTS attendance (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        event_id INTEGER NOT NULL REFERENCES events(id) ON DELETE CASCADE,
        user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        status TEXT NOT NULL DEFAULT 'pending' {_in("status", AttendanceStatus)}
    );
    CREATE UNIQUE INDEX IF NOT EXISTS ux_attendance_event_user ON attendance(event_id, user_id);
    CREATE INDEX IF NOT EXISTS ix_attendance_user ON attendance(user_id);
    """


def player_stats_schema() -> str:
    """performance: rating 1-10, 0 = unrated."""
    return """
    CREATE TABLE IF NOT EXISTS player_stats (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        match_id INTEGER NOT NULL REFERENCES matches(id) ON DELETE CASCADE,
        user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        goals INTEGER NOT NULL DEFAULT 0,
        assists INTEGER NOT NULL DEFAULT 0,
        yellow_cards INTEGER NOT NULL DEFAULT 0,
        red_cards INTEGER NOT NULL DEFAULT 0,
        minutes_played INTEGER,
        performance INTEGER NOT NULL DEFAULT 0
    );
    CREATE UNIQUE INDEX IF NOT EXISTS ux_player_stats_match_user ON player_stats(match_id, user_id);
    CREATE INDEX IF NOT EXISTS ix_player_stats_user ON player_stats(user_id);
    """


def announcements_schema() -> str:
    return """
    CREATE TABLE IF NOT EXISTS announcements (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        team_id INTEGER NOT NULL REFERENCES teams(id) ON DELETE CASCADE,
        title TEXT NOT NULL,
        content TEXT NOT NULL,
        created_at TEXT NOT NULL,
        created_by_id INTEGER REFERENCES users(id) ON DELETE SET NULL
    );
    CREATE INDEX IF NOT EXISTS ix_announcements_team_created ON announcements(team_id, created_at);
    """


def invitations_schema() -> str:
    return f"""
    CREATE TABLE IF NOT EXISTS invitations (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        team_id INTEGER NOT NULL REFERENCES teams(id) ON DELETE CASCADE,
        email TEXT NOT NULL,
        role TEXT NOT NULL DEFAULT 'player' {_in("role", MemberRole)},
        status TEXT NOT NULL DEFAULT 'pending' {_in("status", InvitationStatus)},
        created_at TEXT NOT NULL,
        created_by_id INTEGER REFERENCES users(id) ON DELETE SET NULL
    );
    CREATE UNIQUE INDEX IF NOT EXISTS ux_invitations_team_email ON invitations(team_id, email);
    """


def league_classification_schema() -> str:
    """A NULL season is its own bucket for uniqueness, hence the IFNULL expression."""
    return """
    CREATE TABLE IF NOT EXISTS league_classification (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        team_id INTEGER NOT NULL REFERENCES teams(id) ON DELETE CASCADE,
        external_team_name TEXT NOT NULL,
        season_id INTEGER REFERENCES seasons(id),
        points INTEGER NOT NULL DEFAULT 0,
        position INTEGER,
        games_played INTEGER NOT NULL DEFAULT 0,
        games_won INTEGER NOT NULL DEFAULT 0,
        games_drawn INTEGER NOT NULL DEFAULT 0,
        games_lost INTEGER NOT NULL DEFAULT 0,
        goals_for INTEGER NOT NULL DEFAULT 0,
        goals_against INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    );
    CREATE UNIQUE INDEX IF NOT EXISTS ux_league_classification_team_name_season
        ON league_classification(team_id, external_team_name, IFNULL(season_id, 0));
    CREATE INDEX IF NOT EXISTS ix_league_classification_season ON league_classification(season_id);
    """


def match_lineups_schema() -> str:
    """player_ids, bench_player_ids and position_mapping are JSON text."""
    return """
    CREATE TABLE IF NOT EXISTS match_lineups (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        match_id INTEGER NOT NULL REFERENCES matches(id) ON DELETE CASCADE,
        team_id INTEGER NOT NULL REFERENCES teams(id) ON DELETE CASCADE,
        player_ids TEXT NOT NULL,
        bench_player_ids TEXT NOT NULL DEFAULT '[]',
        formation TEXT,
        position_mapping TEXT,
        created_at TEXT NOT NULL
    );
    CREATE UNIQUE INDEX IF NOT EXISTS ux_match_lineups_match ON match_lineups(match_id);
    CREATE INDEX IF NOT EXISTS ix_match_lineups_team ON match_lineups(team_id);
    """


def team_lineups_schema() -> str:
    return """
    CREATE TABLE IF NOT EXISTS team_lineups (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        team_id INTEGER NOT NULL REFERENCES teams(id) ON DELETE CASCADE,
        formation TEXT NOT NULL,
        position_mapping TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    );
    CREATE UNIQUE INDEX IF NOT EXISTS ux_team_lineups_team ON team_lineups(team_id);
    """


def match_events_schema() -> str:
    """Substitutions, goals, cards and photos: the per-match timeline."""
    return f"""
    CREATE TABLE IF NOT EXISTS match_substitutions (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        match_id INTEGER NOT NULL REFERENCES matches(id) ON DELETE CASCADE,
        player_in_id INTEGER NOT NULL REFERENCES team_members(id) ON DELETE CASCADE,
        player_out_id INTEGER NOT NULL REFERENCES team_members(id) ON DELETE CASCADE,
        minute INTEGER NOT NULL,
        reason TEXT
    );
    CREATE INDEX IF NOT EXISTS ix_match_substitutions_match ON match_substitutions(match_id);

    CREATE TABLE IF NOT EXISTS match_goals (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        match_id INTEGER NOT NULL REFERENCES matches(id) ON DELETE CASCADE,
        scorer_id INTEGER NOT NULL REFERENCES team_members(id) ON DELETE CASCADE,
        minute INTEGER NOT NULL,
        assist_id INTEGER REFERENCES team_members(id) ON DELETE SET NULL,
        type TEXT NOT NULL DEFAULT 'regular' {_in("type", GoalType)},
        description TEXT
    );
    CREATE INDEX IF NOT EXISTS ix_match_goals_match ON match_goals(match_id);

    CREATE TABLE IF NOT EXISTS match_cards (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        match_id INTEGER NOT NULL REFERENCES matches(id) ON DELETE CASCADE,
        player_id INTEGER NOT NULL REFERENCES team_members(id) ON DELETE CASCADE,
        type TEXT NOT NULL {_in("type", CardType)},
        minute INTEGER NOT NULL,
        reason TEXT
    );
    CREATE INDEX IF NOT EXISTS ix_match_cards_match ON match_cards(match_id);

    CREATE TABLE IF NOT EXISTS match_photos (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        match_id INTEGER NOT NULL REFERENCES matches(id) ON DELETE CASCADE,
        url TEXT NOT NULL,
        caption TEXT,
        uploaded_at TEXT NOT NULL,
        uploaded_by_id INTEGER REFERENCES users(id) ON DELETE SET NULL
    );
    CREATE INDEX IF NOT EXISTS ix_match_photos_match ON match_photos(match_id);
    """


def all_schema_sql() -> str:
    """Combine all schema DDL for a single execution. Parents before children."""
    return "\n".join([
        users_schema(),
        teams_schema(),
        team_members_schema(),
        member_claims_schema(),
        seasons_schema(),
        matches_schema(),
        events_schema(),
        attendance_schema(),
        player_stats_schema(),
        announcements_schema(),
        invitations_schema(),
        league_classification_schema(),
        match_lineups_schema(),
        team_lineups_schema(),
        match_events_schema(),
    ])


def session_schema() -> str:
    """Login sessions for the relational backend; sess is JSON, expire is epoch seconds."""
    return """
    CREATE TABLE IF NOT EXISTS session (
        sid TEXT PRIMARY KEY,
        sess TEXT NOT NULL,
        expire REAL NOT NULL
    );
    CREATE INDEX IF NOT EXISTS ix_session_expire ON session(expire);
    """
