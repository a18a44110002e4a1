# -*- coding: utf-8 -*-
"""Teams router: create + list."""
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_session
from ..errors import ConflictError
from ..models_db import Team

router = APIRouter(tags=["teams"])


class TeamCreate(BaseModel):
    name: str = Field(min_length=1)
    code: str = Field(min_length=2, max_length=4)
    logo_url: str | None = Field(None, pattern=r"^https?://\S+$")


@router.post("/teams")
async def create_team(
    data: TeamCreate,
    session: AsyncSession = Depends(get_session),
):
    """Create a team. Codes are unique."""
    code = data.code.upper()
    existing = await session.execute(select(Team.id).where(Team.code == code))
    if existing.scalar_one_or_none() is not None:
        raise ConflictError(f"Team code {code} already exists")

    team = Team(name=data.name, code=code, logo_url=data.logo_url)
    session.add(team)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise ConflictError(f"Team code {code} already exists")
    await session.refresh(team)
    return team_to_dict(team)


@router.get("/teams")
async def list_teams(session: AsyncSession = Depends(get_session)):
    """All teams ordered by name."""
    result = await session.execute(select(Team).order_by(Team.name))
    return [team_to_dict(t) for t in result.scalars().all()]


def team_to_dict(t: Team) -> dict:
    return {
        "id": t.id,
        "name": t.name,
        "code": t.code,
        "logo_url": t.logo_url,
        "created_at": t.created_at.isoformat() if t.created_at else None,
    }
