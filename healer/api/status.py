"""
GET /status
Progress polling for the current or last orchestration run.
"""
from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/status")
async def get_status(request: Request):
    return request.app.state.tracker.snapshot()
