from fastapi import APIRouter, Depends

from .. import schemas
from ..models import User
from ..rate_limit import rate_limited_user
from ..services.llm import LegalLLM, get_llm
from ..storage import Storage, get_storage
from .common import require_owned
from lexai.config import settings
from lexai.utils.logging import logger

router = APIRouter(prefix=f"{settings.api_prefix}/law", tags=["law"])


@router.post("/search", response_model=schemas.LawSearchResponse)
def search_law(
    payload: schemas.LawSearchRequest,
    storage: Storage = Depends(get_storage),
    llm: LegalLLM = Depends(get_llm),
    user: User = Depends(rate_limited_user),
):
    logger.info(
        f"/law/search called by user_id={user.id}, "
        f"query='{payload.query[:100]}{'...' if len(payload.query) > 100 else ''}', "
        f"filters={payload.filters}"
    )

    explanation = llm.explain_law_query(payload.query)

    # acts/cases/commentaries stay empty until a structured legal source is wired in
    results = schemas.LawSearchResults(response=explanation, filters=payload.filters or [])
    search = storage.create_law_search(user.id, payload.query, results.model_dump())

    logger.info(f"Law search {search.id} stored for user_id={user.id}")
    return {"search": schemas.LawSearchFull.model_validate(search)}


@router.get("/searches", response_model=schemas.LawSearchListResponse)
def list_searches(
    storage: Storage = Depends(get_storage),
    user: User = Depends(rate_limited_user),
):
    searches = storage.list_law_searches_by_user_id(user.id)
    logger.info(f"/law/searches returning {len(searches)} searches for user_id={user.id}")
    return {"searches": [schemas.LawSearchSummary.model_validate(s) for s in searches]}


@router.get("/search/{search_id}", response_model=schemas.LawSearchDetailResponse)
def get_search(
    search_id: int,
    storage: Storage = Depends(get_storage),
    user: User = Depends(rate_limited_user),
):
    search = require_owned(storage.get_law_search(search_id), user, "search")
    return {"search": schemas.LawSearchFull.model_validate(search)}
