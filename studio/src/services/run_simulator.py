"""
Simulated pipeline runs: stages finish one after another.
"""

import logging
import uuid
from datetime import datetime, timedelta
from typing import Dict, Iterable, Optional

from studio.src.models.flow import Pipeline, Stage, RunRecord, TaskStatus

logger = logging.getLogger(__name__)

def start_run(
    pipeline: Pipeline,
    message: str = "Manual run",
    trigger: Optional[str] = None,
    commit_id: Optional[str] = None,
) -> Pipeline:
    """Reset every task, record the run in the history and set the first non-empty stage running."""
    for stage in pipeline.stages:
        for task in stage.jobs:
            task.status = TaskStatus.PENDING
            task.logs = []

    started_at = datetime.utcnow()
    pipeline.last_run_id += 1
    pipeline.last_run_status = TaskStatus.RUNNING
    pipeline.last_run_time = started_at.strftime("%Y-%m-%d %H:%M")
    pipeline.duration = None
    pipeline.history.insert(0, RunRecord(
        run_id=pipeline.last_run_id,
        status=TaskStatus.RUNNING,
        message=message,
        trigger=trigger or pipeline.author,
        duration="Running",
        time=pipeline.last_run_time,
        branch=pipeline.branch,
        commit_id=commit_id or uuid.uuid4().hex[:6],
        started_at=started_at,
    ))
    logger.info(f"Started run #{pipeline.last_run_id} of pipeline {pipeline.id}")

    _start_next_stage(pipeline, 0)
    return pipeline

def current_stage_index(pipeline: Pipeline) -> Optional[int]:
    """Index of the first stage that still has running tasks."""
    for i, stage in enumerate(pipeline.stages):
        if any(task.status == TaskStatus.RUNNING for task in stage.jobs):
            return i
    return None

def advance_run(pipeline: Pipeline, failed_task_ids: Iterable[str] = ()) -> Pipeline:
    """
    Finish the running stage and start the next one.
    Tasks listed in `failed_task_ids` fail, which skips every later stage.
    """
    if pipeline.last_run_status != TaskStatus.RUNNING:
        return pipeline

    index = current_stage_index(pipeline)
    if index is None:
        return pipeline

    failed_ids = set(failed_task_ids)
    stage = pipeline.stages[index]
    for task in stage.jobs:
        task.status = TaskStatus.FAILED if task.id in failed_ids else TaskStatus.SUCCESS

    if any(task.status == TaskStatus.FAILED for task in stage.jobs):
        for later in pipeline.stages[index + 1:]:
            for task in later.jobs:
                task.status = TaskStatus.SKIPPED
        _finish_run(pipeline, TaskStatus.FAILED)
        logger.info(f"Run #{pipeline.last_run_id} of {pipeline.id} failed in stage {stage.id}")
        return pipeline

    _start_next_stage(pipeline, index + 1)
    return pipeline

def _start_next_stage(pipeline: Pipeline, start: int) -> None:
    # Empty stages have nothing to run and are passed over
    for stage in pipeline.stages[start:]:
        if stage.jobs:
            for task in stage.jobs:
                task.status = TaskStatus.RUNNING
            return

    _finish_run(pipeline, TaskStatus.SUCCESS)
    logger.info(f"Run #{pipeline.last_run_id} of {pipeline.id} succeeded")

def _finish_run(pipeline: Pipeline, status: TaskStatus) -> None:
    pipeline.last_run_status = status

    record = find_run(pipeline, pipeline.last_run_id)
    if record is None:
        return
    record.status = status
    if record.started_at is not None:
        record.duration = format_duration(datetime.utcnow() - record.started_at)
    pipeline.duration = record.duration

def find_run(pipeline: Pipeline, run_id: int) -> Optional[RunRecord]:
    for record in pipeline.history:
        if record.run_id == run_id:
            return record
    return None

def format_duration(elapsed: timedelta) -> str:
    """Render a duration the way the run list shows it, e.g. '1m 5s'."""
    minutes, seconds = divmod(int(elapsed.total_seconds()), 60)
    if minutes:
        return f"{minutes}m {seconds}s"
    return f"{seconds}s"

def stage_summary(stage: Stage) -> Dict[str, int]:
    """Count a stage's tasks by status."""
    statuses = [task.status for task in stage.jobs]
    return {
        "success": statuses.count(TaskStatus.SUCCESS),
        "failed": statuses.count(TaskStatus.FAILED),
        "running": statuses.count(TaskStatus.RUNNING),
        "pending": statuses.count(TaskStatus.PENDING),
        "total": len(statuses),
    }
