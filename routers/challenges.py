from __future__ import annotations

import random as _rnd
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from catalog import ChallengeCatalog
from deps.pipeline import get_catalog
from schemas.challenges import Challenge, ChallengeRequest, ChallengeSummary, Difficulty

router = APIRouter(prefix="/challenges", tags=["challenges"])


@router.post("", response_model=Challenge)
async def new_challenge(req: ChallengeRequest, catalog: ChallengeCatalog = Depends(get_catalog)):
    # Generated when the model is available, otherwise drawn from the static set
    return await catalog.get_challenge(req.difficulty)


@router.get("", response_model=List[ChallengeSummary])
def list_challenges(
    difficulty: Optional[Difficulty] = None,
    limit: Optional[int] = Query(default=None, ge=1, le=100),
    random: bool = Query(default=False, description="If true, shuffle before limiting"),
    catalog: ChallengeCatalog = Depends(get_catalog),
):
    # materialize once so we can filter/shuffle/limit deterministically
    qs = [c for tier in sorted(catalog.config.coding) for c in catalog.config.coding[tier]]

    if difficulty:
        qs = [c for c in qs if c.difficulty == difficulty]

    if random:
        _rnd.shuffle(qs)

    if limit is not None:
        qs = qs[:limit]

    return qs


@router.get("/{challenge_id}", response_model=Challenge)
def get_challenge_detail(challenge_id: str, catalog: ChallengeCatalog = Depends(get_catalog)):
    c = catalog.get_static(challenge_id)
    if not c:
        raise HTTPException(status_code=404, detail="challenge not found")
    return c
