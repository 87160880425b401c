from __future__ import annotations

from fastapi import APIRouter, Depends

from catalog import ChallengeCatalog
from deps.pipeline import get_catalog
from schemas.aptitude import AptitudeRequest, AptitudeResponse

router = APIRouter(tags=["aptitude"])


@router.post("/aptitude-test", response_model=AptitudeResponse)
async def aptitude_test(req: AptitudeRequest, catalog: ChallengeCatalog = Depends(get_catalog)):
    questions = await catalog.get_aptitude_questions(req.difficulty, req.count)
    return {"questions": questions}
