"""
Structural edits on a pipeline's stages, tasks and code sources.

Every operation leaves no dependency pointing at a task that is no longer in
the stage, and ends by recomputing the width of each stage it touched.
"""

import logging
import uuid
from typing import List, Optional

from studio.src.models.flow import (
    Pipeline,
    Stage,
    Task,
    TaskType,
    Source,
    SOURCE_TYPES,
    DEFAULT_STAGE_WIDTH,
)
from studio.src.models.requests import InsertSide, FanOutPolicy
from studio.src.services.chain_layout import (
    minimum_stage_width,
    clamp_resize_width,
    local_dependencies,
    remote_dependencies,
)

logger = logging.getLogger(__name__)

class FlowEditError(Exception):
    """Raised when an edit cannot be applied to the pipeline."""
    pass

class StageNotFoundError(FlowEditError):
    pass

class TaskNotFoundError(FlowEditError):
    pass

class SourceNotFoundError(FlowEditError):
    pass

def new_stage_id() -> str:
    return f"stage-{uuid.uuid4().hex[:8]}"

def new_task_id() -> str:
    return f"job-{uuid.uuid4().hex[:8]}"

def new_source_id() -> str:
    return f"src-{uuid.uuid4().hex[:8]}"

def get_stage(pipeline: Pipeline, stage_id: str) -> Stage:
    stage = pipeline.find_stage(stage_id)
    if stage is None:
        raise StageNotFoundError(f"Stage '{stage_id}' not found")
    return stage

def get_task(stage: Stage, task_id: str) -> Task:
    task = stage.find_task(task_id)
    if task is None:
        raise TaskNotFoundError(f"Task '{task_id}' not found in stage '{stage.id}'")
    return task

def _build_task(stage: Stage, name: str, task_type: TaskType, task_id: Optional[str]) -> Task:
    task_id = task_id or new_task_id()
    if stage.find_task(task_id) is not None:
        raise FlowEditError(f"Task '{task_id}' already exists in stage '{stage.id}'")
    return Task(id=task_id, name=name, type=task_type)

# --- Width policy ---

def recompute_width(stage: Stage) -> int:
    """Grow the stored width to at least the chain-based minimum."""
    stage.width = max(stage.width or DEFAULT_STAGE_WIDTH, minimum_stage_width(stage.jobs))
    return stage.width

def auto_fit_stage(pipeline: Pipeline, stage_id: str) -> Stage:
    stage = get_stage(pipeline, stage_id)
    stage.width = minimum_stage_width(stage.jobs)
    logger.debug(f"Auto-fit stage {stage_id} to {stage.width}px")
    return stage

def resize_stage(pipeline: Pipeline, stage_id: str, width: int) -> Stage:
    stage = get_stage(pipeline, stage_id)
    stage.width = clamp_resize_width(width)
    return stage

# --- Pipeline and stage edits ---

def rename_pipeline(pipeline: Pipeline, name: str) -> Pipeline:
    pipeline.name = name
    return pipeline

def add_stage(pipeline: Pipeline, name: str = "New Stage", stage_id: Optional[str] = None) -> Stage:
    stage_id = stage_id or new_stage_id()
    if pipeline.find_stage(stage_id) is not None:
        raise FlowEditError(f"Stage '{stage_id}' already exists")

    stage = Stage(id=stage_id, name=name, jobs=[], width=DEFAULT_STAGE_WIDTH)
    pipeline.stages.append(stage)
    logger.debug(f"Added stage {stage_id} to pipeline {pipeline.id}")
    return stage

def delete_stage(pipeline: Pipeline, stage_id: str) -> None:
    stage = get_stage(pipeline, stage_id)
    pipeline.stages.remove(stage)
    logger.debug(f"Deleted stage {stage_id} from pipeline {pipeline.id}")

def rename_stage(pipeline: Pipeline, stage_id: str, name: str) -> Stage:
    stage = get_stage(pipeline, stage_id)
    stage.name = name
    return stage

# --- Task edits ---

def insert_parallel_task(
    pipeline: Pipeline,
    stage_id: str,
    name: str = "New Task",
    task_type: TaskType = TaskType.CUSTOM,
    task_id: Optional[str] = None,
) -> Task:
    """Append a task with no dependencies, forming a new parallel track."""
    stage = get_stage(pipeline, stage_id)
    task = _build_task(stage, name, task_type, task_id)

    stage.jobs.append(task)
    recompute_width(stage)
    logger.debug(f"Inserted parallel task {task.id} into stage {stage_id}")
    return task

def insert_serial_task(
    pipeline: Pipeline,
    stage_id: str,
    anchor_id: str,
    side: InsertSide = InsertSide.AFTER,
    name: str = "New Task",
    task_type: TaskType = TaskType.CUSTOM,
    task_id: Optional[str] = None,
    fan_out: FanOutPolicy = FanOutPolicy.REDIRECT,
) -> Task:
    """
    Splice a new task into the anchor's chain.

    After: the new task depends on the anchor and takes over the anchor's
    dependents. With REDIRECT every dependent swaps the anchor for the new
    task; with BARRIER dependents keep the anchor and also wait on the new task.

    Before: the new task takes the anchor's same-stage dependencies and sits
    at the anchor's index; the anchor then depends on the new task plus any
    remote dependencies it had.
    """
    stage = get_stage(pipeline, stage_id)
    anchor = get_task(stage, anchor_id)
    task = _build_task(stage, name, task_type, task_id)

    if side == InsertSide.AFTER:
        for other in stage.jobs:
            if other is anchor or anchor.id not in other.dependencies:
                continue
            if fan_out == FanOutPolicy.BARRIER:
                other.dependencies = other.dependencies + [task.id]
            else:
                other.dependencies = [
                    task.id if dep == anchor.id else dep
                    for dep in other.dependencies
                ]
        task.dependencies = [anchor.id]
        stage.jobs.append(task)
    else:
        local_ids = {t.id for t in stage.jobs}
        task.dependencies = local_dependencies(anchor, local_ids)
        anchor.dependencies = [task.id] + remote_dependencies(anchor, local_ids)
        stage.jobs.insert(stage.task_index(anchor.id), task)

    recompute_width(stage)
    logger.debug(f"Inserted serial task {task.id} {side.value} {anchor_id} in stage {stage_id}")
    return task

def delete_task(pipeline: Pipeline, stage_id: str, task_id: str) -> None:
    stage = get_stage(pipeline, stage_id)
    task = get_task(stage, task_id)

    stage.jobs.remove(task)
    _drop_dependency(stage, task_id)
    recompute_width(stage)
    logger.debug(f"Deleted task {task_id} from stage {stage_id}")

def update_task(
    pipeline: Pipeline,
    stage_id: str,
    task_id: str,
    name: Optional[str] = None,
    task_type: Optional[TaskType] = None,
    dependencies: Optional[List[str]] = None,
) -> Task:
    """Apply edits from the task form. Dependencies must name sibling tasks."""
    stage = get_stage(pipeline, stage_id)
    task = get_task(stage, task_id)

    if dependencies is not None:
        for dep in dependencies:
            if dep == task_id:
                raise FlowEditError(f"Task '{task_id}' cannot depend on itself")
            if stage.find_task(dep) is None:
                raise FlowEditError(f"Dependency '{dep}' is not a task in stage '{stage_id}'")
        # Keep first occurrence order, drop repeats
        task.dependencies = list(dict.fromkeys(dependencies))

    if name is not None:
        task.name = name
    if task_type is not None:
        task.type = task_type

    recompute_width(stage)
    return task

def move_task(
    pipeline: Pipeline,
    stage_id: str,
    task_id: str,
    target_stage_id: str,
    target_index: Optional[int] = None,
) -> Task:
    """
    Move a task within its stage or to another stage.

    A same-stage move only changes stored order. A cross-stage move clears the
    task's dependencies and removes it from its former siblings' lists.
    """
    source = get_stage(pipeline, stage_id)
    target = get_stage(pipeline, target_stage_id)
    task = get_task(source, task_id)

    if target is not source and target.find_task(task_id) is not None:
        raise FlowEditError(f"Task '{task_id}' already exists in stage '{target_stage_id}'")

    source.jobs.remove(task)
    if target is not source:
        task.dependencies = []
        _drop_dependency(source, task_id)

    if target_index is None or target_index > len(target.jobs):
        target_index = len(target.jobs)
    target.jobs.insert(max(0, target_index), task)

    recompute_width(source)
    if target is not source:
        recompute_width(target)
    logger.debug(f"Moved task {task_id} from {stage_id} to {target_stage_id}[{target_index}]")
    return task

def _drop_dependency(stage: Stage, task_id: str) -> None:
    for other in stage.jobs:
        if task_id in other.dependencies:
            other.dependencies = [dep for dep in other.dependencies if dep != task_id]

# --- Sources ---

def add_source(
    pipeline: Pipeline,
    source_type: str = "Codeup",
    repo: Optional[str] = None,
    name: Optional[str] = None,
    branch: Optional[str] = None,
    source_id: Optional[str] = None,
) -> Source:
    """Attach a code source. The name falls back to the repo path."""
    if source_type not in SOURCE_TYPES:
        raise FlowEditError(f"Unknown source type '{source_type}'")

    source_id = source_id or new_source_id()
    if any(s.id == source_id for s in pipeline.sources):
        raise FlowEditError(f"Source '{source_id}' already exists")

    source = Source(
        id=source_id,
        type=source_type,
        name=name or repo or "New Repository",
        repo=repo,
        branch=branch or "master",
    )
    pipeline.sources.append(source)
    logger.debug(f"Added {source_type} source {source_id} to pipeline {pipeline.id}")
    return source

def remove_source(pipeline: Pipeline, source_id: str) -> None:
    for source in pipeline.sources:
        if source.id == source_id:
            pipeline.sources.remove(source)
            logger.debug(f"Removed source {source_id} from pipeline {pipeline.id}")
            return
    raise SourceNotFoundError(f"Source '{source_id}' not found")
