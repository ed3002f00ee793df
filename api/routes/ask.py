"""
Natural-language question endpoint
"""

from fastapi import APIRouter, Depends, HTTPException
from api.dependencies import get_interpreter, get_repository
from api.interpreter import QueryInterpreter, answer_query
from ingestion.loaders.sqlite_loader import RiverRepository
from schemas.api import AskRequest, AskResponse

router = APIRouter(tags=["Ask"])


@router.post("/ask", response_model=AskResponse)
async def ask(
    body: AskRequest,
    repository: RiverRepository = Depends(get_repository),
    interpreter: QueryInterpreter = Depends(get_interpreter)
):
    if interpreter is None:
        raise HTTPException(status_code=503, detail="Natural-language queries are not enabled")

    reply = await answer_query(body.message, repository, interpreter)
    return AskResponse(reply=reply)
