"""
REST API for the team-management backend.
Thin wrappers around the repository; storage errors become JSON error responses.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncGenerator

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, Field

from teamhub.auth import (
    SESSION_COOKIE,
    create_session_token,
    decode_session_token,
    hash_password,
    new_session_id,
    verify_password,
)
from teamhub.config import Settings, configure_logging, load_settings
from teamhub.models import MemberRole, TeamCategory, TeamType, User, utcnow
from teamhub.persistence import Repository, StorageError, create_repository

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


# ---------- Request models ----------


class SignupRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=6)
    full_name: str = Field(..., min_length=1, max_length=200)
    email: str | None = None


class LoginRequest(BaseModel):
    username: str
    password: str


class CreateTeamRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    join_code: str | None = Field(None, description="Generated when omitted")
    division: str | None = None
    season_year: str | None = None
    category: TeamCategory | None = None
    team_type: TeamType | None = None


class CreateMemberRequest(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=200)
    role: MemberRole = MemberRole.PLAYER
    user_id: int | None = Field(None, description="Unset until an account claims the member")
    position: str | None = None
    jersey_number: int | None = Field(None, ge=0)


class CreateSeasonRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    start_date: datetime
    end_date: datetime
    is_active: bool = False
    description: str | None = None


def _public_user(user: User) -> dict[str, Any]:
    data = user.to_dict()
    data.pop("password", None)
    return data


# ---------- Dependencies ----------


def get_repository(request: Request) -> Repository:
    return request.app.state.repository


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def _session_id(request: Request, credentials: HTTPAuthorizationCredentials | None, settings: Settings) -> str | None:
    token = request.cookies.get(SESSION_COOKIE)
    if token is None and credentials is not None:
        token = credentials.credentials
    if not token:
        return None
    return decode_session_token(token, settings.session_secret)


def current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    repo: Repository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
) -> User:
    """The logged-in user; 401 without a live session."""
    sid = _session_id(request, credentials, settings)
    session = repo.session_store.get(sid) if sid else None
    user = repo.get_user(session["user_id"]) if session else None
    if user is None:
        raise HTTPException(status_code=401, detail="Login required")
    repo.session_store.touch(sid, settings.session_max_age)
    return user


def _start_session(response: Response, repo: Repository, settings: Settings, user: User) -> str:
    sid = new_session_id()
    repo.session_store.set(sid, {"user_id": user.id}, settings.session_max_age)
    token = create_session_token(sid, settings.session_secret, settings.session_max_age)
    response.set_cookie(
        SESSION_COOKIE,
        token,
        max_age=settings.session_max_age,
        httponly=True,
        samesite="lax",
    )
    return token


def _require_team(repo: Repository, team_id: int) -> None:
    if repo.get_team(team_id) is None:
        raise HTTPException(status_code=404, detail="Team not found")


# ---------- App ----------


def create_app(settings: Settings | None = None, repository: Repository | None = None) -> FastAPI:
    """Build the API. The repository is created at startup unless one is passed in."""
    settings = settings or load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        repo = repository if repository is not None else create_repository(settings)
        app.state.repository = repo
        try:
            yield
        finally:
            repo.close()

    app = FastAPI(
        title="TeamHub API",
        description="Team management: rosters, seasons and sessions",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
        message = exc.message if exc.status < 500 else "internal server error"
        return JSONResponse(status_code=exc.status, content={"error": exc.code, "message": message})

    # ---------- Accounts ----------

    @app.post("/signup", status_code=201)
    def signup(
        req: SignupRequest,
        response: Response,
        repo: Repository = Depends(get_repository),
    ) -> dict[str, Any]:
        """Create an account and log it in. Duplicate usernames surface as 409 from storage."""
        user = repo.create_user({
            "username": req.username,
            "password": hash_password(req.password),
            "full_name": req.full_name,
            "email": req.email,
        })
        token = _start_session(response, repo, settings, user)
        logger.info("New account %s", user.username)
        return {"user": _public_user(user), "token": token}

    @app.post("/login")
    def login(
        req: LoginRequest,
        response: Response,
        repo: Repository = Depends(get_repository),
    ) -> dict[str, Any]:
        user = repo.get_user_by_username(req.username)
        if user is None or not verify_password(req.password, user.password):
            raise HTTPException(status_code=401, detail="Invalid username or password")
        user = repo.update_user(user.id, {"last_login_at": utcnow()}) or user
        token = _start_session(response, repo, settings, user)
        return {"user": _public_user(user), "token": token}

    @app.post("/logout")
    def logout(
        request: Request,
        response: Response,
        credentials: HTTPAuthorizationCredentials | None = Depends(security),
        repo: Repository = Depends(get_repository),
    ) -> dict[str, Any]:
        sid = _session_id(request, credentials, settings)
        if sid:
            repo.session_store.destroy(sid)
        response.delete_cookie(SESSION_COOKIE)
        return {"ok": True}

    @app.get("/me")
    def me(user: User = Depends(current_user)) -> dict[str, Any]:
        return {"user": _public_user(user)}

    # ---------- Teams ----------

    @app.post("/teams", status_code=201)
    def create_team(
        req: CreateTeamRequest,
        user: User = Depends(current_user),
        repo: Repository = Depends(get_repository),
    ) -> dict[str, Any]:
        """Create a team; the creator joins it as admin."""
        team = repo.create_team({**req.model_dump(exclude_none=True), "created_by_id": user.id})
        try:
            repo.create_team_member({
                "team_id": team.id,
                "user_id": user.id,
                "full_name": user.full_name,
                "role": MemberRole.ADMIN,
                "is_verified": True,
                "created_by_id": user.id,
            })
        except StorageError:
            logger.warning("Admin membership for team %d failed; removing the team", team.id)
            repo.delete_team(team.id)
            raise
        return {"team": team.to_dict()}

    @app.get("/teams/join/{code}")
    def get_team_by_code(code: str, repo: Repository = Depends(get_repository)) -> dict[str, Any]:
        team = repo.get_team_by_join_code(code)
        if team is None:
            raise HTTPException(status_code=404, detail="Team not found")
        return {"team": team.to_dict()}

    @app.get("/teams/{team_id}")
    def get_team(team_id: int, repo: Repository = Depends(get_repository)) -> dict[str, Any]:
        team = repo.get_team(team_id)
        if team is None:
            raise HTTPException(status_code=404, detail="Team not found")
        return {"team": team.to_dict()}

    @app.delete("/teams/{team_id}")
    def delete_team(
        team_id: int,
        user: User = Depends(current_user),
        repo: Repository = Depends(get_repository),
    ) -> dict[str, Any]:
        if not repo.delete_team(team_id):
            raise HTTPException(status_code=404, detail="Team not found")
        logger.info("Team %d deleted by user %d", team_id, user.id)
        return {"deleted": True}

    # ---------- Members ----------

    @app.get("/teams/{team_id}/members")
    def list_members(team_id: int, repo: Repository = Depends(get_repository)) -> dict[str, Any]:
        _require_team(repo, team_id)
        return {"members": [m.to_dict() for m in repo.list_team_members(team_id)]}

    @app.post("/teams/{team_id}/members", status_code=201)
    def add_member(
        team_id: int,
        req: CreateMemberRequest,
        user: User = Depends(current_user),
        repo: Repository = Depends(get_repository),
    ) -> dict[str, Any]:
        """Team id comes from the path; a missing team is a 409 from storage."""
        member = repo.create_team_member({
            **req.model_dump(exclude_none=True),
            "team_id": team_id,
            "created_by_id": user.id,
        })
        return {"member": member.to_dict()}

    @app.delete("/members/{member_id}")
    def delete_member(
        member_id: int,
        user: User = Depends(current_user),
        repo: Repository = Depends(get_repository),
    ) -> dict[str, Any]:
        if not repo.delete_team_member(member_id):
            raise HTTPException(status_code=404, detail="Member not found")
        return {"deleted": True}

    # ---------- Seasons ----------

    @app.get("/teams/{team_id}/seasons")
    def list_seasons(team_id: int, repo: Repository = Depends(get_repository)) -> dict[str, Any]:
        _require_team(repo, team_id)
        active = repo.get_active_season(team_id)
        return {
            "seasons": [s.to_dict() for s in repo.list_seasons(team_id)],
            "active_season_id": active.id if active else None,
        }

    @app.post("/teams/{team_id}/seasons", status_code=201)
    def create_season(
        team_id: int,
        req: CreateSeasonRequest,
        user: User = Depends(current_user),
        repo: Repository = Depends(get_repository),
    ) -> dict[str, Any]:
        """A new active season replaces the team's current one."""
        if req.end_date < req.start_date:
            raise HTTPException(status_code=400, detail="end_date must not be before start_date")
        _require_team(repo, team_id)
        if req.is_active:
            repo.deactivate_all_seasons(team_id)
        season = repo.create_season({**req.model_dump(exclude_none=True), "team_id": team_id})
        return {"season": season.to_dict()}

    @app.delete("/seasons/{season_id}")
    def delete_season(
        season_id: int,
        user: User = Depends(current_user),
        repo: Repository = Depends(get_repository),
    ) -> Any:
        if repo.delete_season(season_id):
            return {"deleted": True}
        if repo.get_season(season_id) is None:
            raise HTTPException(status_code=404, detail="Season not found")
        return JSONResponse(
            status_code=409,
            content={"error": "integrity", "message": "season is still referenced by matches or classifications"},
        )

    return app


def _default_app() -> FastAPI:
    settings = load_settings()
    configure_logging(settings.log_level)
    return create_app(settings)


app = _default_app()


# ---------- Run with: uvicorn teamhub.api:app --reload ----------
