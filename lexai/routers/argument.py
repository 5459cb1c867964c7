from fastapi import APIRouter, Depends, status

from .. import schemas
from ..models import User
from ..rate_limit import rate_limited_user
from ..services.llm import LegalLLM, get_llm
from ..storage import Storage, get_storage
from .common import require_owned
from lexai.config import settings
from lexai.utils.logging import logger

router = APIRouter(prefix=f"{settings.api_prefix}/argument", tags=["argument"])


@router.post(
    "/generate",
    response_model=schemas.ArgumentCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
def generate_argument(
    payload: schemas.CaseDetails,
    storage: Storage = Depends(get_storage),
    llm: LegalLLM = Depends(get_llm),
    user: User = Depends(rate_limited_user),
):
    logger.info(f"/argument/generate called by user_id={user.id}, title={payload.title}")

    generated = llm.draft_argument(
        title=payload.title,
        jurisdiction=payload.jurisdiction,
        case_type=payload.type,
        acts=payload.acts,
        facts=payload.facts,
        side=payload.side,
    )

    argument = storage.create_argument(
        user_id=user.id,
        title=payload.title,
        case_details=payload.model_dump(),
        generated_content=generated,
    )

    logger.info(f"Argument {argument.id} generated for user_id={user.id}")
    return {"argument": schemas.ArgumentCreated.model_validate(argument)}


@router.get("/list", response_model=schemas.ArgumentListResponse)
def list_arguments(
    storage: Storage = Depends(get_storage),
    user: User = Depends(rate_limited_user),
):
    arguments = storage.list_arguments_by_user_id(user.id)
    logger.info(f"/argument/list returning {len(arguments)} arguments for user_id={user.id}")
    return {"arguments": [schemas.ArgumentSummary.model_validate(a) for a in arguments]}


@router.get("/{argument_id}", response_model=schemas.ArgumentResponse)
def get_argument(
    argument_id: int,
    storage: Storage = Depends(get_storage),
    user: User = Depends(rate_limited_user),
):
    argument = require_owned(storage.get_argument(argument_id), user, "argument")
    return {"argument": schemas.ArgumentFull.model_validate(argument)}
