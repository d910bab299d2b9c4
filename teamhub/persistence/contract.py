"""
The repository contract shared by every storage backend.

Records go in as plain mappings and come back as model dataclasses. Missing
rows are not errors: getters and updates return None, deletes return False,
listings return []. Integrity failures raise StorageError subclasses.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Mapping, Protocol, runtime_checkable

from teamhub.models import (
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
)

from .sessions import SessionStore


@runtime_checkable
class Repository(Protocol):
    session_store: SessionStore

    def close(self) -> None: ...

    def get_user(self, user_id: int) -> User | None: ...

    def get_user_by_username(self, username: str) -> User | None: ...

    def get_user_by_email(self, email: str) -> User | None: ...

    def list_users(self, limit: int | None = None) -> list[User]: ...

    def create_user(self, values: Mapping[str, Any]) -> User: ...

    def update_user(self, user_id: int, changes: Mapping[str, Any]) -> User | None: ...

    def delete_user(self, user_id: int) -> bool: ...

    def get_team(self, team_id: int) -> Team | None: ...

    def get_team_by_join_code(self, join_code: str) -> Team | None: ...

    def list_teams(self, limit: int | None = None) -> list[Team]: ...

    def list_teams_by_user(self, user_id: int) -> list[Team]: ...

    def create_team(self, values: Mapping[str, Any]) -> Team: ...

    def update_team(self, team_id: int, changes: Mapping[str, Any]) -> Team | None: ...

    def delete_team(self, team_id: int) -> bool: ...

    def get_team_member(self, member_id: int) -> TeamMember | None: ...

    def get_team_member_by_user(self, team_id: int, user_id: int) -> TeamMember | None: ...

    def list_team_members(self, team_id: int) -> list[TeamMember]: ...

    def list_memberships(self, user_id: int) -> list[TeamMember]: ...

    def create_team_member(self, values: Mapping[str, Any]) -> TeamMember: ...

    def update_team_member(self, member_id: int, changes: Mapping[str, Any]) -> TeamMember | None: ...

    def delete_team_member(self, member_id: int) -> bool: ...

    def get_member_claim(self, claim_id: int) -> MemberClaim | None: ...

    def list_member_claims(self, team_id: int, status: str | None = None) -> list[MemberClaim]:
        """Newest request first; status filters to pending, approved or rejected."""
        ...

    def list_member_claims_by_user(self, user_id: int) -> list[MemberClaim]: ...

    def create_member_claim(self, values: Mapping[str, Any]) -> MemberClaim: ...

    def update_member_claim(self, claim_id: int, changes: Mapping[str, Any]) -> MemberClaim | None: ...

    def delete_member_claim(self, claim_id: int) -> bool: ...

    def get_match(self, match_id: int) -> Match | None: ...

    def list_matches(self, team_id: int, season_id: int | None = None, limit: int | None = None) -> list[Match]: ...

    def create_match(self, values: Mapping[str, Any]) -> Match: ...

    def update_match(self, match_id: int, changes: Mapping[str, Any]) -> Match | None: ...

    def delete_match(self, match_id: int) -> bool: ...

    def get_event(self, event_id: int) -> Event | None: ...

    def list_events(
        self,
        team_id: int,
        upcoming_after: datetime | str | None = None,
        limit: int | None = None,
    ) -> list[Event]: ...

    def create_event(self, values: Mapping[str, Any]) -> Event: ...

    def update_event(self, event_id: int, changes: Mapping[str, Any]) -> Event | None: ...

    def delete_event(self, event_id: int) -> bool: ...

    def get_attendance(self, attendance_id: int) -> Attendance | None: ...

    def get_attendance_for_user(self, event_id: int, user_id: int) -> Attendance | None: ...

    def list_attendance(self, event_id: int | None = None, user_id: int | None = None) -> list[Attendance]: ...

    def create_attendance(self, values: Mapping[str, Any]) -> Attendance: ...

    def update_attendance(self, attendance_id: int, changes: Mapping[str, Any]) -> Attendance | None: ...

    def delete_attendance(self, attendance_id: int) -> bool: ...

    def get_player_stat(self, stat_id: int) -> PlayerStat | None: ...

    def list_player_stats(self, match_id: int | None = None, user_id: int | None = None) -> list[PlayerStat]: ...

    def create_player_stat(self, values: Mapping[str, Any]) -> PlayerStat: ...

    def update_player_stat(self, stat_id: int, changes: Mapping[str, Any]) -> PlayerStat | None: ...

    def delete_player_stat(self, stat_id: int) -> bool: ...

    def get_announcement(self, announcement_id: int) -> Announcement | None: ...

    def list_announcements(self, team_id: int, limit: int | None = None) -> list[Announcement]: ...

    def create_announcement(self, values: Mapping[str, Any]) -> Announcement: ...

    def update_announcement(self, announcement_id: int, changes: Mapping[str, Any]) -> Announcement | None: ...

    def delete_announcement(self, announcement_id: int) -> bool: ...

    def get_invitation(self, invitation_id: int) -> Invitation | None: ...

    def get_invitation_by_email(self, team_id: int, email: str) -> Invitation | None: ...

    def list_invitations(self, team_id: int) -> list[Invitation]: ...

    def create_invitation(self, values: Mapping[str, Any]) -> Invitation: ...

    def update_invitation(self, invitation_id: int, changes: Mapping[str, Any]) -> Invitation | None: ...

    def delete_invitation(self, invitation_id: int) -> bool: ...

    def get_season(self, season_id: int) -> Season | None: ...

    def get_active_season(self, team_id: int) -> Season | None: ...

    def list_seasons(self, team_id: int) -> list[Season]: ...

    def create_season(self, values: Mapping[str, Any]) -> Season: ...

    def update_season(self, season_id: int, changes: Mapping[str, Any]) -> Season | None: ...

    def delete_season(self, season_id: int) -> bool:
        """False when missing, or while a match or classification still references it."""
        ...

    def deactivate_all_seasons(self, team_id: int) -> int:
        """Clear is_active on every season of the team; returns how many changed."""
        ...

    def get_classification(self, classification_id: int) -> LeagueClassification | None: ...

    def list_classifications(self, team_id: int, season_id: int | None = None) -> list[LeagueClassification]: ...

    def create_classification(self, values: Mapping[str, Any]) -> LeagueClassification: ...

    def bulk_create_classifications(self, rows: Iterable[Mapping[str, Any]]) -> list[LeagueClassification]:
        """All rows or none; ids follow input order."""
        ...

    def update_classification(self, classification_id: int, changes: Mapping[str, Any]) -> LeagueClassification | None: ...

    def delete_classification(self, classification_id: int) -> bool: ...

    def delete_team_classifications(self, team_id: int) -> int: ...

    def get_match_lineup(self, match_id: int) -> MatchLineup | None: ...

    def create_match_lineup(self, values: Mapping[str, Any]) -> MatchLineup: ...

    def update_match_lineup(self, lineup_id: int, changes: Mapping[str, Any]) -> MatchLineup | None: ...

    def delete_match_lineup(self, lineup_id: int) -> bool: ...

    def get_team_lineup(self, team_id: int) -> TeamLineup | None: ...

    def create_team_lineup(self, values: Mapping[str, Any]) -> TeamLineup: ...

    def update_team_lineup(self, lineup_id: int, changes: Mapping[str, Any]) -> TeamLineup | None: ...

    def delete_team_lineup(self, lineup_id: int) -> bool: ...

    def get_match_substitution(self, substitution_id: int) -> MatchSubstitution | None: ...

    def list_match_substitutions(self, match_id: int) -> list[MatchSubstitution]: ...

    def create_match_substitution(self, values: Mapping[str, Any]) -> MatchSubstitution: ...

    def update_match_substitution(self, substitution_id: int, changes: Mapping[str, Any]) -> MatchSubstitution | None: ...

    def delete_match_substitution(self, substitution_id: int) -> bool: ...

    def get_match_goal(self, goal_id: int) -> MatchGoal | None: ...

    def list_match_goals(self, match_id: int) -> list[MatchGoal]: ...

    def create_match_goal(self, values: Mapping[str, Any]) -> MatchGoal: ...

    def update_match_goal(self, goal_id: int, changes: Mapping[str, Any]) -> MatchGoal | None: ...

    def delete_match_goal(self, goal_id: int) -> bool: ...

    def get_match_card(self, card_id: int) -> MatchCard | None: ...

    def list_match_cards(self, match_id: int) -> list[MatchCard]: ...

    def create_match_card(self, values: Mapping[str, Any]) -> MatchCard: ...

    def update_match_card(self, card_id: int, changes: Mapping[str, Any]) -> MatchCard | None: ...

    def delete_match_card(self, card_id: int) -> bool: ...

    def get_match_photo(self, photo_id: int) -> MatchPhoto | None: ...

    def list_match_photos(self, match_id: int) -> list[MatchPhoto]: ...

    def create_match_photo(self, values: Mapping[str, Any]) -> MatchPhoto: ...

    def update_match_photo(self, photo_id: int, changes: Mapping[str, Any]) -> MatchPhoto | None: ...

    def delete_match_photo(self, photo_id: int) -> bool: ...
