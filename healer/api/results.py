"""
GET /results
Returns the JSON report of the last run. ``project_root`` defaults to the
project of the most recent run.
"""
import json
import os
from typing import Optional

from fastapi import APIRouter, HTTPException, Request

from healer.core.config import load_settings
from healer.core.errors import ConfigError

router = APIRouter()


@router.get("/results")
async def get_results(request: Request, project_root: Optional[str] = None):
    root = project_root or request.app.state.tracker.snapshot()["project_root"]
    if not root:
        raise HTTPException(status_code=404, detail="No run recorded yet")

    try:
        path = load_settings(root).report_path
    except ConfigError as e:
        raise HTTPException(status_code=422, detail=str(e))

    if not os.path.isfile(path):
        raise HTTPException(status_code=404, detail=f"No report at {path}")

    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)
