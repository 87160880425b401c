from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from catalog import ChallengeCatalog
from deps.auth import require_admin
from deps.pipeline import get_catalog
from errors import CatalogDefinitionError

logger = logging.getLogger("placement-grading.admin")

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.post("/reload")
def reload_catalog(catalog: ChallengeCatalog = Depends(get_catalog)):
    try:
        n = catalog.reload()
    except CatalogDefinitionError as e:
        # keep serving the previous catalog
        logger.error("catalog reload rejected: %s", e)
        return {"ok": False, "error": str(e)}
    return {"ok": True, "count": n}
