"""
Repository contract tests, run against both backends.
Every behavior here must hold identically for the snapshot and SQL stores.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

import sys
sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent))

from teamhub.join_code import JOIN_CODE_ALPHABET, JOIN_CODE_LENGTH
from teamhub.models import MatchStatus, MemberRole, UserRole
from teamhub.persistence import (
    ConflictError,
    IntegrityOtherError,
    ReferenceIntegrityError,
    RequiredFieldError,
    SnapshotStore,
    SqlStore,
)

KICKOFF = datetime(2025, 3, 1, 18, 0, tzinfo=timezone.utc)


@pytest.fixture(params=["snapshot", "sql"])
def repo(request, tmp_path):
    if request.param == "snapshot":
        store = SnapshotStore(tmp_path / "data")
    else:
        store = SqlStore(f"sqlite:///{tmp_path / 'test.db'}")
    try:
        yield store
    finally:
        store.close()


def make_user(repo, username: str = "alice", **extra):
    values = {"username": username, "password": "hashed", "full_name": username.title()}
    values.update(extra)
    return repo.create_user(values)


def make_team(repo, owner, name: str = "Rovers", **extra):
    return repo.create_team({"name": name, "created_by_id": owner.id, **extra})


def make_match(repo, team, when: datetime = KICKOFF, **extra):
    values = {
        "team_id": team.id,
        "opponent_name": "United",
        "match_date": when,
        "location": "Home ground",
        "is_home": True,
    }
    values.update(extra)
    return repo.create_match(values)


def make_season(repo, team, name: str = "2025", start: datetime = KICKOFF, **extra):
    values = {
        "team_id": team.id,
        "name": name,
        "start_date": start,
        "end_date": start + timedelta(days=270),
    }
    values.update(extra)
    return repo.create_season(values)


# ---------- Users ----------


def test_create_user_fills_defaults(repo):
    user = make_user(repo)
    assert user.id == 1
    assert user.role == UserRole.PLAYER.value
    assert user.profile_picture == "/default-avatar.png"
    assert user.is_email_verified is False
    assert repo.get_user(user.id) == user


def test_duplicate_username_conflicts_and_keeps_first(repo):
    first = make_user(repo, "alice", full_name="First")
    with pytest.raises(ConflictError) as exc:
        make_user(repo, "alice", full_name="Second")
    assert exc.value.message == "username already exists"
    assert exc.value.status == 409
    assert repo.get_user_by_username("alice").full_name == "First"
    assert [u.id for u in repo.list_users()] == [first.id]


def test_email_unique_only_when_set(repo):
    make_user(repo, "a")
    make_user(repo, "b")
    make_user(repo, "c", email="c@example.com")
    with pytest.raises(ConflictError, match="email already exists"):
        make_user(repo, "d", email="c@example.com")
    assert repo.get_user_by_email("c@example.com").username == "c"
    assert repo.get_user_by_email("nobody@example.com") is None


def test_missing_required_field(repo):
    with pytest.raises(RequiredFieldError) as exc:
        repo.create_user({"username": "x", "password": "p"})
    assert "full_name" in exc.value.message
    assert exc.value.status == 400
    assert repo.list_users() == []


def test_unknown_field_is_programming_error(repo):
    with pytest.raises(ValueError):
        make_user(repo, nickname="al")


def test_closed_value_set_rejected(repo):
    with pytest.raises(IntegrityOtherError):
        make_user(repo, role="goalkeeper")
    user = make_user(repo, role=UserRole.COACH)
    assert user.role == "coach"


def test_bool_fields_require_bool(repo):
    team = make_team(repo, make_user(repo))
    with pytest.raises(IntegrityOtherError, match="is_home"):
        make_match(repo, team, is_home="yes")
    with pytest.raises(IntegrityOtherError):
        make_match(repo, team, is_home=1)
    match = make_match(repo, team, is_home=False)
    with pytest.raises(IntegrityOtherError):
        repo.update_match(match.id, {"is_home": "no"})
    assert repo.get_match(match.id).is_home is False
    assert [m.id for m in repo.list_matches(team.id)] == [match.id]


def test_unserializable_json_field_rejected(repo):
    team = make_team(repo, make_user(repo))
    first = make_match(repo, team)
    second = make_match(repo, team, when=KICKOFF + timedelta(days=7))
    with pytest.raises(IntegrityOtherError, match="position_mapping"):
        repo.create_match_lineup({
            "match_id": first.id, "team_id": team.id, "player_ids": [1],
            "position_mapping": {"GK": KICKOFF},
        })
    assert repo.get_match_lineup(first.id) is None

    lineup = repo.create_match_lineup({"match_id": second.id, "team_id": team.id, "player_ids": [1]})
    with pytest.raises(IntegrityOtherError, match="player_ids"):
        repo.update_match_lineup(lineup.id, {"player_ids": [object()]})
    assert repo.get_match_lineup(second.id).player_ids == [1]
    assert repo.create_match_lineup({"match_id": first.id, "team_id": team.id, "player_ids": [2]}).player_ids == [2]


def test_list_users_limit(repo):
    for name in ("a", "b", "c"):
        make_user(repo, name)
    assert [u.username for u in repo.list_users(limit=2)] == ["a", "b"]


def test_update_is_partial_merge(repo):
    user = make_user(repo, email="a@example.com")
    updated = repo.update_user(user.id, {"full_name": "Alice Smith"})
    assert updated.full_name == "Alice Smith"
    assert updated.email == "a@example.com"
    assert repo.get_user(user.id) == updated


def test_update_cannot_clear_required_field(repo):
    user = make_user(repo)
    with pytest.raises(RequiredFieldError):
        repo.update_user(user.id, {"full_name": None})
    assert repo.get_user(user.id).full_name == "Alice"


def test_update_into_existing_username_conflicts(repo):
    make_user(repo, "alice")
    bob = make_user(repo, "bob")
    with pytest.raises(ConflictError):
        repo.update_user(bob.id, {"username": "alice"})
    assert repo.get_user(bob.id).username == "bob"


def test_not_found_is_not_an_error(repo):
    assert repo.get_user(99) is None
    assert repo.update_user(99, {"full_name": "x"}) is None
    assert repo.delete_user(99) is False
    assert repo.list_team_members(99) == []


# ---------- Ids ----------


def test_ids_are_never_reused(repo):
    owner = make_user(repo)
    teams = [make_team(repo, owner, name=f"T{i}") for i in range(3)]
    assert [t.id for t in teams] == [1, 2, 3]
    assert repo.delete_team(teams[0].id)
    assert repo.delete_team(teams[2].id)
    assert make_team(repo, owner, name="T3").id == 4


# ---------- Teams and join codes ----------


def test_join_code_generated(repo):
    team = make_team(repo, make_user(repo))
    assert len(team.join_code) == JOIN_CODE_LENGTH
    assert all(c in JOIN_CODE_ALPHABET for c in team.join_code)
    assert team.logo == "/default-team-logo.png"
    assert repo.get_team_by_join_code(team.join_code.lower()) == team


def test_supplied_join_code_must_be_unique(repo):
    owner = make_user(repo)
    make_team(repo, owner, join_code="AB23CD")
    with pytest.raises(ConflictError, match="join code already exists"):
        make_team(repo, owner, name="Other", join_code="ab23cd")


def test_team_requires_existing_creator(repo):
    with pytest.raises(RequiredFieldError):
        repo.create_team({"name": "Orphans"})
    with pytest.raises(ReferenceIntegrityError) as exc:
        repo.create_team({"name": "Ghosts", "created_by_id": 42})
    assert exc.value.message == "referenced user does not exist"
    assert repo.list_teams() == []


def test_team_enums(repo):
    owner = make_user(repo)
    team = make_team(repo, owner, category="AMATEUR", team_type="7-a-side")
    assert (team.category, team.team_type) == ("AMATEUR", "7-a-side")
    with pytest.raises(IntegrityOtherError):
        make_team(repo, owner, name="Bad", team_type="5-a-side")


def test_update_team_keeps_join_code(repo):
    team = make_team(repo, make_user(repo), division="Second")
    updated = repo.update_team(team.id, {"name": "Rovers FC"})
    assert updated.name == "Rovers FC"
    assert updated.join_code == team.join_code
    assert updated.division == "Second"


@pytest.mark.parametrize("code", ["O0IL1A", "AB23", "AB23CDE", "AB-23C"])
def test_explicit_join_code_must_use_alphabet(repo, code):
    owner = make_user(repo)
    with pytest.raises(IntegrityOtherError, match="invalid join code"):
        make_team(repo, owner, join_code=code)
    assert repo.list_teams() == []
    team = make_team(repo, owner)
    with pytest.raises(IntegrityOtherError, match="invalid join code"):
        repo.update_team(team.id, {"join_code": code})
    assert repo.get_team(team.id).join_code == team.join_code


def test_join_code_cannot_be_cleared(repo):
    team = make_team(repo, make_user(repo))
    with pytest.raises(RequiredFieldError, match="join_code"):
        repo.update_team(team.id, {"join_code": None})
    assert repo.get_team(team.id).join_code == team.join_code
    changed = repo.update_team(team.id, {"join_code": " zz99kk "})
    assert changed.join_code == "ZZ99KK"
    assert repo.get_team_by_join_code("zz99kk").id == team.id


# ---------- Team members ----------


def test_team_member_unique_per_user(repo):
    owner = make_user(repo)
    team = make_team(repo, owner)
    repo.create_team_member({"team_id": team.id, "user_id": owner.id, "full_name": "Alice", "role": "admin"})
    with pytest.raises(ConflictError) as exc:
        repo.create_team_member({"team_id": team.id, "user_id": owner.id, "full_name": "Alice again"})
    assert exc.value.message == "team member already exists"
    assert len(repo.list_team_members(team.id)) == 1


def test_unclaimed_members_do_not_conflict(repo):
    team = make_team(repo, make_user(repo))
    repo.create_team_member({"team_id": team.id, "full_name": "Keeper"})
    repo.create_team_member({"team_id": team.id, "full_name": "Striker"})
    assert [m.full_name for m in repo.list_team_members(team.id)] == ["Keeper", "Striker"]


def test_member_lookups(repo):
    alice = make_user(repo, "alice")
    bob = make_user(repo, "bob")
    rovers = make_team(repo, alice, name="Rovers")
    city = make_team(repo, alice, name="City")
    make_team(repo, bob, name="Empty")
    member = repo.create_team_member({"team_id": rovers.id, "user_id": bob.id, "full_name": "Bob"})
    repo.create_team_member({"team_id": city.id, "user_id": bob.id, "full_name": "Bob"})
    assert repo.get_team_member_by_user(rovers.id, bob.id) == member
    assert repo.get_team_member_by_user(rovers.id, alice.id) is None
    assert [m.team_id for m in repo.list_memberships(bob.id)] == [rovers.id, city.id]
    assert [t.name for t in repo.list_teams_by_user(bob.id)] == ["Rovers", "City"]
    assert repo.list_teams_by_user(alice.id) == []


def test_member_requires_existing_team(repo):
    with pytest.raises(ReferenceIntegrityError, match="referenced team does not exist"):
        repo.create_team_member({"team_id": 7, "full_name": "Nobody"})


# ---------- Member claims ----------


def test_member_claim_lifecycle(repo):
    owner = make_user(repo, "owner")
    player = make_user(repo, "player")
    team = make_team(repo, owner)
    keeper = repo.create_team_member({"team_id": team.id, "full_name": "Keeper"})
    striker = repo.create_team_member({"team_id": team.id, "full_name": "Striker"})

    first = repo.create_member_claim({
        "team_id": team.id, "team_member_id": keeper.id, "user_id": player.id, "requested_at": KICKOFF,
    })
    second = repo.create_member_claim({
        "team_id": team.id, "team_member_id": striker.id, "user_id": player.id,
        "requested_at": KICKOFF + timedelta(hours=1),
    })
    assert first.status == "pending"
    assert first.reviewed_at is None
    assert [c.id for c in repo.list_member_claims(team.id)] == [second.id, first.id]
    assert [c.id for c in repo.list_member_claims_by_user(player.id)] == [second.id, first.id]

    reviewed = repo.update_member_claim(first.id, {
        "status": "approved", "reviewed_at": KICKOFF + timedelta(days=1), "reviewed_by_id": owner.id,
    })
    assert reviewed.status == "approved"
    assert reviewed.reviewed_by_id == owner.id
    assert [c.id for c in repo.list_member_claims(team.id, status="pending")] == [second.id]
    assert repo.get_member_claim(first.id) == reviewed

    with pytest.raises(IntegrityOtherError):
        repo.update_member_claim(second.id, {"status": "maybe"})
    with pytest.raises(ReferenceIntegrityError, match="referenced team member does not exist"):
        repo.create_member_claim({"team_id": team.id, "team_member_id": 999, "user_id": player.id})
    assert repo.delete_member_claim(second.id)
    assert repo.delete_member_claim(second.id) is False
    assert repo.list_member_claims_by_user(owner.id) == []


def test_member_claims_follow_their_parents(repo):
    owner = make_user(repo, "owner")
    player = make_user(repo, "player")
    other = make_user(repo, "other")
    team = make_team(repo, owner)
    keeper = repo.create_team_member({"team_id": team.id, "full_name": "Keeper"})
    striker = repo.create_team_member({"team_id": team.id, "full_name": "Striker"})
    by_member = repo.create_member_claim({"team_id": team.id, "team_member_id": keeper.id, "user_id": player.id})
    by_user = repo.create_member_claim({"team_id": team.id, "team_member_id": striker.id, "user_id": other.id})
    reviewed = repo.create_member_claim({
        "team_id": team.id, "team_member_id": striker.id, "user_id": player.id,
        "status": "rejected", "reviewed_by_id": owner.id, "rejection_reason": "not you",
    })

    assert repo.delete_team_member(keeper.id)
    assert repo.get_member_claim(by_member.id) is None
    assert repo.delete_user(other.id)
    assert repo.get_member_claim(by_user.id) is None
    assert repo.delete_user(owner.id)
    assert repo.get_member_claim(reviewed.id).reviewed_by_id is None

    assert repo.delete_team(team.id)
    assert repo.get_member_claim(reviewed.id) is None


# ---------- Cascades ----------


def test_team_delete_cascades_everything(repo):
    owner = make_user(repo)
    team = make_team(repo, owner)
    members = [
        repo.create_team_member({"team_id": team.id, "full_name": f"Player {i}"}) for i in range(3)
    ]
    m1 = make_match(repo, team)
    m2 = make_match(repo, team, when=KICKOFF + timedelta(days=7))
    repo.create_match_lineup({"match_id": m1.id, "team_id": team.id, "player_ids": [m.id for m in members]})
    repo.create_match_goal({"match_id": m2.id, "scorer_id": members[0].id, "minute": 10})
    repo.create_match_goal({"match_id": m2.id, "scorer_id": members[1].id, "minute": 55})
    announcement = repo.create_announcement({"team_id": team.id, "title": "Hi", "content": "Welcome"})

    assert repo.delete_team(team.id) is True

    assert repo.get_team(team.id) is None
    assert repo.list_team_members(team.id) == []
    assert repo.list_matches(team.id) == []
    assert repo.get_match_lineup(m1.id) is None
    assert repo.list_match_goals(m2.id) == []
    assert repo.get_announcement(announcement.id) is None
    assert repo.get_user(owner.id) is not None


def test_team_delete_cascades_events_seasons_and_rest(repo):
    owner = make_user(repo)
    team = make_team(repo, owner)
    season = make_season(repo, team)
    make_match(repo, team, season_id=season.id)
    repo.create_classification({"team_id": team.id, "season_id": season.id, "external_team_name": "City"})
    event = repo.create_event({
        "team_id": team.id, "title": "Training", "type": "training",
        "start_time": KICKOFF, "location": "Pitch 2",
    })
    attendance = repo.create_attendance({"event_id": event.id, "user_id": owner.id})
    repo.create_invitation({"team_id": team.id, "email": "new@example.com"})
    repo.create_team_lineup({"team_id": team.id, "formation": "4-4-2"})

    assert repo.delete_team(team.id) is True

    assert repo.get_season(season.id) is None
    assert repo.list_classifications(team.id) == []
    assert repo.get_event(event.id) is None
    assert repo.get_attendance(attendance.id) is None
    assert repo.list_invitations(team.id) == []
    assert repo.get_team_lineup(team.id) is None


def test_example_scenario(repo):
    u1 = make_user(repo, "u1")
    team = make_team(repo, u1, name="A", join_code="AB23CD")
    member = repo.create_team_member({
        "team_id": team.id, "user_id": u1.id, "full_name": "U1", "role": MemberRole.ADMIN,
    })
    match = make_match(repo, team, status=MatchStatus.SCHEDULED)
    assert repo.get_team_by_join_code("AB23CD").id == team.id

    assert repo.delete_team(team.id)

    assert repo.get_team(team.id) is None
    assert repo.get_team_member(member.id) is None
    assert repo.get_match(match.id) is None
    assert repo.get_team_by_join_code("AB23CD") is None


def test_user_delete_removes_links_and_clears_authorship(repo):
    owner = make_user(repo, "owner")
    player = make_user(repo, "player")
    team = make_team(repo, owner)
    keep = repo.create_team_member({"team_id": team.id, "full_name": "Placeholder", "created_by_id": owner.id})
    gone = repo.create_team_member({"team_id": team.id, "user_id": owner.id, "full_name": "Owner"})
    match = make_match(repo, team)
    stat = repo.create_player_stat({"match_id": match.id, "user_id": owner.id, "goals": 2})
    other_stat = repo.create_player_stat({"match_id": match.id, "user_id": player.id})
    event = repo.create_event({
        "team_id": team.id, "title": "Meeting", "type": "meeting", "start_time": KICKOFF,
        "location": "Clubhouse", "created_by_id": owner.id,
    })
    attendance = repo.create_attendance({"event_id": event.id, "user_id": owner.id, "status": "confirmed"})
    note = repo.create_announcement({"team_id": team.id, "title": "t", "content": "c", "created_by_id": owner.id})
    photo = repo.create_match_photo({"match_id": match.id, "url": "/p.jpg", "uploaded_by_id": owner.id})

    assert repo.delete_user(owner.id) is True

    assert repo.get_team_member(gone.id) is None
    assert repo.get_player_stat(stat.id) is None
    assert repo.get_attendance(attendance.id) is None
    assert repo.get_player_stat(other_stat.id) is not None
    assert repo.get_team(team.id).created_by_id is None
    assert repo.get_team_member(keep.id).created_by_id is None
    assert repo.get_event(event.id).created_by_id is None
    assert repo.get_announcement(note.id).created_by_id is None
    assert repo.get_match_photo(photo.id).uploaded_by_id is None


def test_member_delete_cleans_match_timeline(repo):
    team = make_team(repo, make_user(repo))
    a = repo.create_team_member({"team_id": team.id, "full_name": "A"})
    b = repo.create_team_member({"team_id": team.id, "full_name": "B"})
    match = make_match(repo, team)
    scored = repo.create_match_goal({"match_id": match.id, "scorer_id": a.id, "minute": 3})
    assisted = repo.create_match_goal({"match_id": match.id, "scorer_id": b.id, "assist_id": a.id, "minute": 30})
    card = repo.create_match_card({"match_id": match.id, "player_id": a.id, "type": "yellow", "minute": 40})
    sub = repo.create_match_substitution({"match_id": match.id, "player_in_id": b.id, "player_out_id": a.id, "minute": 60})

    assert repo.delete_team_member(a.id) is True

    assert repo.get_match_goal(scored.id) is None
    assert repo.get_match_goal(assisted.id).assist_id is None
    assert repo.get_match_card(card.id) is None
    assert repo.get_match_substitution(sub.id) is None
    assert repo.get_team_member(b.id) is not None


def test_match_delete_cascades_timeline(repo):
    team = make_team(repo, make_user(repo))
    member = repo.create_team_member({"team_id": team.id, "full_name": "A"})
    match = make_match(repo, team)
    repo.create_match_card({"match_id": match.id, "player_id": member.id, "type": "red", "minute": 80})
    repo.create_match_photo({"match_id": match.id, "url": "/a.jpg"})
    assert repo.delete_match(match.id)
    assert repo.list_match_cards(match.id) == []
    assert repo.list_match_photos(match.id) == []
    assert repo.get_team_member(member.id) is not None


def test_event_delete_cascades_attendance(repo):
    user = make_user(repo)
    team = make_team(repo, user)
    event = repo.create_event({
        "team_id": team.id, "title": "Training", "type": "training", "start_time": KICKOFF, "location": "Pitch",
    })
    repo.create_attendance({"event_id": event.id, "user_id": user.id})
    assert repo.delete_event(event.id)
    assert repo.list_attendance(event_id=event.id) == []


# ---------- Seasons ----------


def test_season_delete_refused_while_classified(repo):
    team = make_team(repo, make_user(repo))
    season = make_season(repo, team)
    row = repo.create_classification({"team_id": team.id, "season_id": season.id, "external_team_name": "City"})

    assert repo.delete_season(season.id) is False
    assert repo.get_season(season.id) is not None
    assert repo.get_classification(row.id) is not None

    assert repo.delete_classification(row.id)
    assert repo.delete_season(season.id) is True
    assert repo.get_season(season.id) is None


def test_season_delete_refused_while_matches_reference_it(repo):
    team = make_team(repo, make_user(repo))
    season = make_season(repo, team)
    make_match(repo, team, season_id=season.id)
    assert repo.delete_season(season.id) is False
    assert repo.delete_season(999) is False


def test_active_season_and_deactivate(repo):
    team = make_team(repo, make_user(repo))
    older = make_season(repo, team, "2024", start=KICKOFF - timedelta(days=365), is_active=True)
    newer = make_season(repo, team, "2025", start=KICKOFF, is_active=True)
    make_season(repo, team, "2026", start=KICKOFF + timedelta(days=365))

    assert repo.get_active_season(team.id).id == newer.id
    assert [s.name for s in repo.list_seasons(team.id)] == ["2026", "2025", "2024"]
    assert repo.deactivate_all_seasons(team.id) == 2
    assert repo.get_active_season(team.id) is None
    assert repo.get_season(older.id).is_active is False
    assert repo.deactivate_all_seasons(team.id) == 0


# ---------- Listings ----------


def test_list_matches_newest_first_with_filters(repo):
    team = make_team(repo, make_user(repo))
    season = make_season(repo, team)
    first = make_match(repo, team, when=KICKOFF)
    second = make_match(repo, team, when=KICKOFF + timedelta(days=7), season_id=season.id)
    third = make_match(repo, team, when=KICKOFF + timedelta(days=14), season_id=season.id)

    assert [m.id for m in repo.list_matches(team.id)] == [third.id, second.id, first.id]
    assert [m.id for m in repo.list_matches(team.id, season_id=season.id)] == [third.id, second.id]
    assert [m.id for m in repo.list_matches(team.id, limit=1)] == [third.id]
    assert repo.get_match(first.id).is_home is True
    assert repo.get_match(first.id).match_date == KICKOFF


def test_list_events_ordered_and_upcoming(repo):
    team = make_team(repo, make_user(repo))
    later = repo.create_event({
        "team_id": team.id, "title": "Later", "type": "other",
        "start_time": KICKOFF + timedelta(days=2), "location": "X",
    })
    earlier = repo.create_event({
        "team_id": team.id, "title": "Earlier", "type": "training",
        "start_time": KICKOFF, "location": "X",
    })
    assert [e.id for e in repo.list_events(team.id)] == [earlier.id, later.id]
    assert [e.id for e in repo.list_events(team.id, upcoming_after=KICKOFF + timedelta(hours=1))] == [later.id]
    assert [e.id for e in repo.list_events(team.id, limit=1)] == [earlier.id]


def test_announcements_newest_first(repo):
    team = make_team(repo, make_user(repo))
    old = repo.create_announcement({
        "team_id": team.id, "title": "old", "content": "c", "created_at": KICKOFF,
    })
    new = repo.create_announcement({
        "team_id": team.id, "title": "new", "content": "c", "created_at": KICKOFF + timedelta(hours=1),
    })
    assert [a.id for a in repo.list_announcements(team.id)] == [new.id, old.id]
    assert [a.id for a in repo.list_announcements(team.id, limit=1)] == [new.id]


def test_attendance_and_player_stats(repo):
    alice = make_user(repo, "alice")
    bob = make_user(repo, "bob")
    team = make_team(repo, alice)
    event = repo.create_event({
        "team_id": team.id, "title": "T", "type": "training", "start_time": KICKOFF, "location": "X",
    })
    row = repo.create_attendance({"event_id": event.id, "user_id": alice.id})
    repo.create_attendance({"event_id": event.id, "user_id": bob.id, "status": "declined"})
    assert row.status == "pending"
    with pytest.raises(ConflictError, match="attendance already recorded"):
        repo.create_attendance({"event_id": event.id, "user_id": alice.id})
    assert repo.get_attendance_for_user(event.id, bob.id).status == "declined"
    assert len(repo.list_attendance(event_id=event.id)) == 2
    assert [a.id for a in repo.list_attendance(user_id=alice.id)] == [row.id]
    assert repo.update_attendance(row.id, {"status": "confirmed"}).status == "confirmed"

    match = make_match(repo, team)
    stat = repo.create_player_stat({"match_id": match.id, "user_id": alice.id, "goals": 1, "performance": 8})
    with pytest.raises(ConflictError):
        repo.create_player_stat({"match_id": match.id, "user_id": alice.id})
    assert repo.list_player_stats(match_id=match.id) == [stat]
    assert repo.list_player_stats(user_id=bob.id) == []


def test_invitations(repo):
    team = make_team(repo, make_user(repo))
    invite = repo.create_invitation({"team_id": team.id, "email": "x@example.com", "role": "coach"})
    assert invite.status == "pending"
    with pytest.raises(ConflictError, match="invitation already exists"):
        repo.create_invitation({"team_id": team.id, "email": "x@example.com"})
    assert repo.get_invitation_by_email(team.id, "x@example.com") == invite
    assert repo.update_invitation(invite.id, {"status": "accepted"}).status == "accepted"
    assert repo.delete_invitation(invite.id)
    assert repo.list_invitations(team.id) == []


def test_classifications_ordering_and_null_season_bucket(repo):
    team = make_team(repo, make_user(repo))
    season = make_season(repo, team)
    unranked = repo.create_classification({"team_id": team.id, "external_team_name": "Z"})
    second = repo.create_classification({"team_id": team.id, "external_team_name": "B", "position": 2})
    first = repo.create_classification({"team_id": team.id, "external_team_name": "A", "position": 1})
    with pytest.raises(ConflictError, match="classification already exists"):
        repo.create_classification({"team_id": team.id, "external_team_name": "Z"})
    seasonal = repo.create_classification({"team_id": team.id, "external_team_name": "Z", "season_id": season.id})

    assert [c.id for c in repo.list_classifications(team.id)] == [first.id, second.id, unranked.id, seasonal.id]
    assert [c.id for c in repo.list_classifications(team.id, season_id=season.id)] == [seasonal.id]

    updated = repo.update_classification(first.id, {"points": 3, "games_won": 1})
    assert updated.points == 3
    assert updated.updated_at >= first.updated_at
    assert repo.delete_team_classifications(team.id) == 4
    assert repo.list_classifications(team.id) == []


def test_bulk_create_classifications_is_all_or_nothing(repo):
    team = make_team(repo, make_user(repo))
    rows = repo.bulk_create_classifications([
        {"team_id": team.id, "external_team_name": name, "position": pos}
        for pos, name in enumerate(["A", "B", "C"], start=1)
    ])
    assert [r.external_team_name for r in rows] == ["A", "B", "C"]
    assert rows[0].id < rows[1].id < rows[2].id
    assert repo.list_classifications(team.id) == rows
    assert repo.bulk_create_classifications([]) == []

    with pytest.raises(ConflictError, match="classification already exists"):
        repo.bulk_create_classifications([
            {"team_id": team.id, "external_team_name": "D"},
            {"team_id": team.id, "external_team_name": "D"},
        ])
    with pytest.raises(ReferenceIntegrityError, match="referenced team does not exist"):
        repo.bulk_create_classifications([
            {"team_id": team.id, "external_team_name": "E"},
            {"team_id": 999, "external_team_name": "F"},
        ])
    assert [r.external_team_name for r in repo.list_classifications(team.id)] == ["A", "B", "C"]


# ---------- Lineups and match timeline ----------


def test_match_lineup_one_per_match(repo):
    team = make_team(repo, make_user(repo))
    match = make_match(repo, team)
    lineup = repo.create_match_lineup({
        "match_id": match.id, "team_id": team.id, "player_ids": [1, 2, 3],
        "formation": "4-3-3", "position_mapping": {"GK": 1},
    })
    assert lineup.bench_player_ids == []
    assert repo.get_match_lineup(match.id) == lineup
    with pytest.raises(ConflictError, match="match lineup already exists"):
        repo.create_match_lineup({"match_id": match.id, "team_id": team.id, "player_ids": []})
    updated = repo.update_match_lineup(lineup.id, {"bench_player_ids": [4, 5]})
    assert repo.get_match_lineup(match.id).bench_player_ids == [4, 5]
    assert updated.position_mapping == {"GK": 1}
    assert repo.delete_match_lineup(lineup.id)
    assert repo.get_match_lineup(match.id) is None


def test_team_lineup_one_per_team(repo):
    team = make_team(repo, make_user(repo))
    lineup = repo.create_team_lineup({"team_id": team.id, "formation": "4-4-2"})
    with pytest.raises(ConflictError, match="team lineup already exists"):
        repo.create_team_lineup({"team_id": team.id, "formation": "3-5-2"})
    updated = repo.update_team_lineup(lineup.id, {"formation": "3-5-2"})
    assert updated.formation == "3-5-2"
    assert updated.updated_at >= lineup.updated_at
    assert repo.get_team_lineup(team.id).formation == "3-5-2"


def test_timeline_ordered_by_minute(repo):
    team = make_team(repo, make_user(repo))
    a = repo.create_team_member({"team_id": team.id, "full_name": "A"})
    b = repo.create_team_member({"team_id": team.id, "full_name": "B"})
    match = make_match(repo, team)
    late = repo.create_match_goal({"match_id": match.id, "scorer_id": a.id, "minute": 88, "type": "penalty"})
    early = repo.create_match_goal({"match_id": match.id, "scorer_id": b.id, "minute": 12})
    assert [g.id for g in repo.list_match_goals(match.id)] == [early.id, late.id]
    assert early.type == "regular"
    with pytest.raises(IntegrityOtherError):
        repo.create_match_card({"match_id": match.id, "player_id": a.id, "type": "blue", "minute": 5})
    with pytest.raises(ReferenceIntegrityError, match="referenced team member does not exist"):
        repo.create_match_goal({"match_id": match.id, "scorer_id": 999, "minute": 1})
    s2 = repo.create_match_substitution({"match_id": match.id, "player_in_id": a.id, "player_out_id": b.id, "minute": 70})
    s1 = repo.create_match_substitution({"match_id": match.id, "player_in_id": b.id, "player_out_id": a.id, "minute": 46})
    assert [s.id for s in repo.list_match_substitutions(match.id)] == [s1.id, s2.id]


def test_photos_newest_first(repo):
    team = make_team(repo, make_user(repo))
    match = make_match(repo, team)
    old = repo.create_match_photo({"match_id": match.id, "url": "/1.jpg", "uploaded_at": KICKOFF})
    new = repo.create_match_photo({"match_id": match.id, "url": "/2.jpg", "uploaded_at": KICKOFF + timedelta(minutes=5)})
    assert [p.id for p in repo.list_match_photos(match.id)] == [new.id, old.id]
    assert repo.update_match_photo(old.id, {"caption": "Warm-up"}).caption == "Warm-up"


def test_timestamps_are_utc(repo):
    user = make_user(repo, last_login_at="2025-03-01T19:00:00+01:00")
    stored = repo.get_user(user.id)
    assert stored.last_login_at == KICKOFF
    assert stored.last_login_at.tzinfo is not None
