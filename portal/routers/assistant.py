import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..agent import ask_assistant
from ..database import get_db
from ..schemas import AssistantRequest, AssistantResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["assistant"])


@router.post("/assistant", response_model=AssistantResponse)
async def assistant(body: AssistantRequest, db: Session = Depends(get_db)):
    """Answer a question about events, listings, vendors and the forum."""
    logger.debug("Assistant question: %s", body.question[:200])
    answer = await ask_assistant(db, body.question)
    return AssistantResponse(answer=answer)
