"""POST /v1/retrieve — answer a question from the tenant's data."""

from fastapi import APIRouter, Request

from orgquery.api.schemas import RetrieveRequest, RetrieveResponse
from orgquery.config import config
from orgquery.types import RetrievalQuestion

router = APIRouter(tags=["retrieval"])


@router.post("/retrieve", response_model=RetrieveResponse)
async def retrieve(request: Request, body: RetrieveRequest):
    """Database first, knowledge base as fallback."""
    orchestrator = request.app.state.orchestrator
    question = RetrievalQuestion(
        tenant_id=request.state.tenant_id,
        text=body.question,
        page=body.page,
        page_size=body.page_size or config.default_page_size,
        user_id=body.user_id,
    )
    answer = await orchestrator.answer(question)
    return RetrieveResponse(
        source=answer.source.value,
        summary=answer.summary,
        records=answer.records,
        intent=answer.metadata.intent.value,
        row_count=answer.metadata.row_count,
    )
