# grading/routers/progress.py

from fastapi import APIRouter, Depends, HTTPException

from db import SessionLocal
from deps.auth import require_client
from models import ProgressRecord
from schemas.progress import ProgressOut

router = APIRouter(prefix="/progress", tags=["progress"])


@router.get("/recent-list", dependencies=[Depends(require_client)])
def progress_recent(limit: int = 20, activity_type: str | None = None):
    limit = max(1, min(limit, 100))

    with SessionLocal() as db:
        q = db.query(ProgressRecord)
        if activity_type:
            q = q.filter(ProgressRecord.activity_type == activity_type)
        items = q.order_by(ProgressRecord.created_at.desc()).limit(limit).all()

    # Reuse schema; exclude potentially large JSON activity_data
    rows = [ProgressOut.model_validate(r).model_dump(exclude={"activity_data"}) for r in items]
    return {"ok": True, "items": rows, "count": len(rows)}


@router.get("/{record_id}", response_model=ProgressOut)
def get_progress_record(record_id: int):
    with SessionLocal() as db:
        r = db.get(ProgressRecord, record_id)
        if not r:
            raise HTTPException(status_code=404, detail="Progress record not found")
        return ProgressOut.model_validate(r)
