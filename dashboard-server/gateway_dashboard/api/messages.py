from __future__ import annotations
from fastapi import APIRouter, Depends
from gateway_dashboard.api.dependencies import get_submission_handler
from gateway_dashboard.models.messages import FormatRequest, SubmissionRequest, SubmissionResult
from gateway_dashboard.services.submission import SubmissionHandler, format_json_value

router = APIRouter(prefix="/messages", tags=["messages"])


@router.post("/send", response_model=SubmissionResult)
async def send_message(
    req: SubmissionRequest,
    handler: SubmissionHandler = Depends(get_submission_handler),
):
    return await handler.submit(req)


@router.post("/format", response_model=FormatRequest)
def format_value(req: FormatRequest):
    # MalformedInputError -> 400 problem response, caller keeps its text
    return FormatRequest(value=format_json_value(req.value))
