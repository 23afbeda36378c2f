"""
POST /run-agent
Starts one orchestration run for a local project in the background.
Only one run at a time: a second request while a run is active gets 409.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, HTTPException, Request
from pydantic import BaseModel

from healer.agents.orchestrator import Orchestrator
from healer.core.config import Settings, load_settings
from healer.core.errors import ConfigError
from healer.state.run_tracker import RunTracker

logger = logging.getLogger(__name__)

router = APIRouter()


class RunRequest(BaseModel):
    project_root: str
    dry_run: bool = False
    create_backup: Optional[bool] = None
    write_markdown: Optional[bool] = None
    max_iterations_per_strategy: Optional[int] = None
    max_allowed_increase: Optional[int] = None
    disabled_strategies: Optional[List[str]] = None
    config_file: Optional[str] = None


class RunAccepted(BaseModel):
    message: str
    project_root: str
    dry_run: bool


def _execute(settings: Settings, tracker: RunTracker) -> None:
    try:
        report = Orchestrator(settings, tracker=tracker).run()
        logger.info("Background run finished: %s", report.status)
    except Exception as e:
        logger.error("Background run failed: %s", e, exc_info=True)
        tracker.fail(f"{type(e).__name__}: {e}")


@router.post("/run-agent", response_model=RunAccepted, status_code=202)
async def run_agent(body: RunRequest, request: Request, background: BackgroundTasks):
    tracker: RunTracker = request.app.state.tracker

    try:
        settings = load_settings(
            body.project_root,
            config_file=body.config_file,
            dry_run=body.dry_run,
            create_backup=body.create_backup,
            write_markdown=body.write_markdown,
            max_iterations_per_strategy=body.max_iterations_per_strategy,
            max_allowed_increase=body.max_allowed_increase,
            disabled_strategies=body.disabled_strategies,
        )
    except ConfigError as e:
        raise HTTPException(status_code=422, detail=str(e))

    if not tracker.try_start(settings.project_root):
        raise HTTPException(status_code=409, detail="A run is already in progress")

    background.add_task(_execute, settings, tracker)
    return RunAccepted(
        message="Run started",
        project_root=settings.project_root,
        dry_run=settings.dry_run,
    )
