from fastapi import APIRouter, Depends, HTTPException
from typing import List

from studio.src.models.flow import Pipeline, PipelineSummary
from studio.src.services.template_loader import load_templates, TemplateConfigError
from studio.src.services.workspace import Workspace, PipelineNotFoundError, get_workspace

router = APIRouter(prefix="/pipelines", tags=["pipelines"])

@router.get("", response_model=List[PipelineSummary])
async def list_pipelines(workspace: Workspace = Depends(get_workspace)):
    """List all saved pipelines."""
    return workspace.list_pipelines()

@router.get("/templates")
async def list_templates():
    """List the templates a new pipeline can start from."""
    try:
        templates = load_templates()
    except TemplateConfigError as e:
        raise HTTPException(status_code=500, detail=str(e))

    return [
        {
            "name": t["name"],
            "desc": t["desc"],
            "icon": t["icon"],
            "stages": len(t["stages"]),
        }
        for t in templates
    ]

@router.get("/{pipeline_id}", response_model=Pipeline)
async def get_pipeline(pipeline_id: str, workspace: Workspace = Depends(get_workspace)):
    """Get a pipeline with its stages and tasks."""
    try:
        return workspace.get_pipeline(pipeline_id)
    except PipelineNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
