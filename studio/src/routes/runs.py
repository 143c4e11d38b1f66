"""
Simulated run endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException
from redis.exceptions import RedisError
from typing import List, Optional
import logging

from studio.src.models.flow import Pipeline, RunRecord, TaskStatus
from studio.src.models.requests import RunTriggerRequest, RunAdvanceRequest
from studio.src.services.run_simulator import start_run, advance_run, stage_summary
from studio.src.services.status_store import set_live_status, get_live_status
from studio.src.services.workspace import Workspace, PipelineNotFoundError, get_workspace

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pipelines", tags=["runs"])

def _get_pipeline(workspace: Workspace, pipeline_id: str) -> Pipeline:
    try:
        return workspace.get_pipeline(pipeline_id)
    except PipelineNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

async def _publish(pipeline: Pipeline):
    try:
        await set_live_status(pipeline.id, pipeline.last_run_id, pipeline.last_run_status.value)
    except RedisError as e:
        logger.warning(f"Could not publish run status for {pipeline.id}: {e}")

def _run_view(pipeline: Pipeline) -> dict:
    return {
        "pipeline_id": pipeline.id,
        "run_id": pipeline.last_run_id,
        "status": pipeline.last_run_status.value,
        "stages": [
            {
                "id": stage.id,
                "name": stage.name,
                "summary": stage_summary(stage),
                "tasks": {task.id: task.status.value for task in stage.jobs},
            }
            for stage in pipeline.stages
        ],
    }

@router.get("/{pipeline_id}/runs", response_model=List[RunRecord])
async def list_runs(pipeline_id: str, workspace: Workspace = Depends(get_workspace)):
    """Run history, newest first."""
    return _get_pipeline(workspace, pipeline_id).history

@router.post("/{pipeline_id}/runs")
async def trigger_run(
    pipeline_id: str,
    request: Optional[RunTriggerRequest] = None,
    workspace: Workspace = Depends(get_workspace),
):
    """Start a simulated run."""
    pipeline = _get_pipeline(workspace, pipeline_id)

    if pipeline.last_run_status == TaskStatus.RUNNING:
        raise HTTPException(status_code=409, detail="Pipeline is already running")

    request = request or RunTriggerRequest()
    start_run(pipeline, message=request.message, trigger=request.trigger)
    await _publish(pipeline)
    return _run_view(pipeline)

@router.post("/{pipeline_id}/runs/advance")
async def advance(
    pipeline_id: str,
    request: Optional[RunAdvanceRequest] = None,
    workspace: Workspace = Depends(get_workspace),
):
    """Finish the running stage of the current run."""
    pipeline = _get_pipeline(workspace, pipeline_id)

    advance_run(pipeline, request.failed_task_ids if request else [])
    await _publish(pipeline)
    return _run_view(pipeline)

@router.get("/{pipeline_id}/runs/status")
async def run_status(pipeline_id: str, workspace: Workspace = Depends(get_workspace)):
    """Per-stage status of the latest run."""
    pipeline = _get_pipeline(workspace, pipeline_id)

    view = _run_view(pipeline)
    try:
        view["live_status"] = await get_live_status(pipeline_id)
    except RedisError as e:
        logger.warning(f"Could not read run status for {pipeline_id}: {e}")
        view["live_status"] = None
    return view
