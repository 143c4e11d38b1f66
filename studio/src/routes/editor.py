"""
Visual editor endpoints. Edits apply to an open draft until it is saved.
"""

from contextlib import contextmanager
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from studio.src.db.database import get_db
from studio.src.models.flow import Pipeline, Stage, Task, Source
from studio.src.models.requests import (
    DraftCreateRequest,
    PipelineRenameRequest,
    StageCreateRequest,
    StageUpdateRequest,
    TaskCreateRequest,
    SerialInsertRequest,
    TaskUpdateRequest,
    TaskMoveRequest,
    StageResizeRequest,
    SourceCreateRequest,
    StageLayoutResponse,
)
from studio.src.services import flow_editor
from studio.src.services.chain_layout import organize_into_chains, minimum_stage_width
from studio.src.services.flow_editor import (
    FlowEditError,
    StageNotFoundError,
    TaskNotFoundError,
    SourceNotFoundError,
)
from studio.src.services.persistence import save_pipeline_record
from studio.src.services.template_loader import get_template, TemplateConfigError
from studio.src.services.workspace import Workspace, PipelineNotFoundError, get_workspace

router = APIRouter(prefix="/editor", tags=["editor"])

@contextmanager
def edit_errors():
    """Translate editor errors into HTTP responses."""
    try:
        yield
    except (PipelineNotFoundError, StageNotFoundError, TaskNotFoundError, SourceNotFoundError) as e:
        raise HTTPException(status_code=404, detail=str(e))
    except FlowEditError as e:
        raise HTTPException(status_code=400, detail=str(e))

def get_draft(pipeline_id: str, workspace: Workspace = Depends(get_workspace)) -> Pipeline:
    with edit_errors():
        return workspace.get_draft(pipeline_id)

# --- Drafts ---

@router.post("/drafts", response_model=Pipeline, status_code=201)
async def open_draft(request: DraftCreateRequest, workspace: Workspace = Depends(get_workspace)):
    """
    Open a draft of an existing pipeline, or of a new one from a template.
    Reopening a pipeline that already has a draft returns that draft unchanged.
    """
    if request.template:
        try:
            template = get_template(request.template)
        except TemplateConfigError as e:
            raise HTTPException(status_code=404, detail=str(e))
        return workspace.open_draft_from_template(template, request.name)

    if not request.pipeline_id:
        raise HTTPException(status_code=400, detail="Either 'pipeline_id' or 'template' is required")

    with edit_errors():
        return workspace.open_draft(request.pipeline_id)

@router.get("/drafts/{pipeline_id}", response_model=Pipeline)
async def read_draft(draft: Pipeline = Depends(get_draft)):
    return draft

@router.delete("/drafts/{pipeline_id}", status_code=204)
async def discard_draft(pipeline_id: str, workspace: Workspace = Depends(get_workspace)):
    with edit_errors():
        workspace.discard_draft(pipeline_id)

@router.post("/drafts/{pipeline_id}/save", response_model=Pipeline)
async def save_draft(
    pipeline_id: str,
    workspace: Workspace = Depends(get_workspace),
    db: AsyncSession = Depends(get_db),
):
    """Commit the draft to the catalogue and the database."""
    with edit_errors():
        saved = workspace.commit_draft(pipeline_id)

    await save_pipeline_record(db, saved)
    return saved

@router.patch("/drafts/{pipeline_id}", response_model=Pipeline)
async def rename_pipeline(request: PipelineRenameRequest, draft: Pipeline = Depends(get_draft)):
    return flow_editor.rename_pipeline(draft, request.name)

# --- Sources ---

@router.post("/drafts/{pipeline_id}/sources", response_model=Source, status_code=201)
async def add_source(request: SourceCreateRequest, draft: Pipeline = Depends(get_draft)):
    with edit_errors():
        return flow_editor.add_source(
            draft,
            request.type,
            repo=request.repo,
            name=request.name,
            branch=request.branch,
        )

@router.delete("/drafts/{pipeline_id}/sources/{source_id}", status_code=204)
async def remove_source(source_id: str, draft: Pipeline = Depends(get_draft)):
    with edit_errors():
        flow_editor.remove_source(draft, source_id)

# --- Stages ---

@router.post("/drafts/{pipeline_id}/stages", response_model=Stage, status_code=201)
async def add_stage(request: StageCreateRequest, draft: Pipeline = Depends(get_draft)):
    with edit_errors():
        return flow_editor.add_stage(draft, request.name)

@router.patch("/drafts/{pipeline_id}/stages/{stage_id}", response_model=Stage)
async def rename_stage(stage_id: str, request: StageUpdateRequest, draft: Pipeline = Depends(get_draft)):
    with edit_errors():
        return flow_editor.rename_stage(draft, stage_id, request.name)

@router.delete("/drafts/{pipeline_id}/stages/{stage_id}", status_code=204)
async def delete_stage(stage_id: str, draft: Pipeline = Depends(get_draft)):
    with edit_errors():
        flow_editor.delete_stage(draft, stage_id)

@router.post("/drafts/{pipeline_id}/stages/{stage_id}/resize", response_model=Stage)
async def resize_stage(stage_id: str, request: StageResizeRequest, draft: Pipeline = Depends(get_draft)):
    with edit_errors():
        return flow_editor.resize_stage(draft, stage_id, request.width)

@router.post("/drafts/{pipeline_id}/stages/{stage_id}/auto-fit", response_model=Stage)
async def auto_fit_stage(stage_id: str, draft: Pipeline = Depends(get_draft)):
    with edit_errors():
        return flow_editor.auto_fit_stage(draft, stage_id)

@router.get("/drafts/{pipeline_id}/stages/{stage_id}/layout", response_model=StageLayoutResponse)
async def stage_layout(stage_id: str, draft: Pipeline = Depends(get_draft)):
    """Chains of task ids, stacked top to bottom, and the auto-fit width."""
    with edit_errors():
        stage = flow_editor.get_stage(draft, stage_id)

    return StageLayoutResponse(
        stage_id=stage.id,
        chains=[[task.id for task in chain] for chain in organize_into_chains(stage.jobs)],
        min_width=minimum_stage_width(stage.jobs),
        width=stage.width,
    )

# --- Tasks ---

@router.post("/drafts/{pipeline_id}/stages/{stage_id}/tasks", response_model=Task, status_code=201)
async def add_parallel_task(stage_id: str, request: TaskCreateRequest, draft: Pipeline = Depends(get_draft)):
    with edit_errors():
        return flow_editor.insert_parallel_task(draft, stage_id, request.name, request.type)

@router.post(
    "/drafts/{pipeline_id}/stages/{stage_id}/tasks/{task_id}/serial",
    response_model=Task,
    status_code=201,
)
async def add_serial_task(
    stage_id: str,
    task_id: str,
    request: SerialInsertRequest,
    draft: Pipeline = Depends(get_draft),
):
    with edit_errors():
        return flow_editor.insert_serial_task(
            draft,
            stage_id,
            task_id,
            side=request.side,
            name=request.name,
            task_type=request.type,
            fan_out=request.fan_out,
        )

@router.patch("/drafts/{pipeline_id}/stages/{stage_id}/tasks/{task_id}", response_model=Task)
async def update_task(
    stage_id: str,
    task_id: str,
    request: TaskUpdateRequest,
    draft: Pipeline = Depends(get_draft),
):
    with edit_errors():
        return flow_editor.update_task(
            draft,
            stage_id,
            task_id,
            name=request.name,
            task_type=request.type,
            dependencies=request.dependencies,
        )

@router.delete("/drafts/{pipeline_id}/stages/{stage_id}/tasks/{task_id}", status_code=204)
async def delete_task(stage_id: str, task_id: str, draft: Pipeline = Depends(get_draft)):
    with edit_errors():
        flow_editor.delete_task(draft, stage_id, task_id)

@router.post("/drafts/{pipeline_id}/stages/{stage_id}/tasks/{task_id}/move", response_model=Task)
async def move_task(
    stage_id: str,
    task_id: str,
    request: TaskMoveRequest,
    draft: Pipeline = Depends(get_draft),
):
    with edit_errors():
        return flow_editor.move_task(
            draft,
            stage_id,
            task_id,
            request.target_stage_id,
            request.target_index,
        )
