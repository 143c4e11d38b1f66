from pydantic import BaseModel
from typing import List, Optional
from enum import Enum

from studio.src.models.flow import TaskType

class InsertSide(str, Enum):
    BEFORE = "before"
    AFTER = "after"

class FanOutPolicy(str, Enum):
    REDIRECT = "redirect"
    BARRIER = "barrier"

class DraftCreateRequest(BaseModel):
    pipeline_id: Optional[str] = None
    template: Optional[str] = None
    name: Optional[str] = None

class PipelineRenameRequest(BaseModel):
    name: str

class StageCreateRequest(BaseModel):
    name: str = "New Stage"

class StageUpdateRequest(BaseModel):
    name: str

class TaskCreateRequest(BaseModel):
    name: str = "New Task"
    type: TaskType = TaskType.CUSTOM

class SerialInsertRequest(TaskCreateRequest):
    side: InsertSide = InsertSide.AFTER
    fan_out: FanOutPolicy = FanOutPolicy.REDIRECT

class TaskUpdateRequest(BaseModel):
    name: Optional[str] = None
    type: Optional[TaskType] = None
    dependencies: Optional[List[str]] = None

class TaskMoveRequest(BaseModel):
    target_stage_id: str
    target_index: Optional[int] = None

class StageResizeRequest(BaseModel):
    width: int

class SourceCreateRequest(BaseModel):
    type: str = "Codeup"
    repo: Optional[str] = None
    name: Optional[str] = None
    branch: Optional[str] = None

class RunTriggerRequest(BaseModel):
    message: str = "Manual run"
    trigger: Optional[str] = None

class RunAdvanceRequest(BaseModel):
    failed_task_ids: List[str] = []

class StageLayoutResponse(BaseModel):
    stage_id: str
    chains: List[List[str]]
    min_width: int
    width: int
