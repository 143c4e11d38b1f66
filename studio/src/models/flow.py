"""
Pipeline, stage and task models used by the editor.
"""

from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime
from enum import Enum

DEFAULT_STAGE_WIDTH = 320

# Repository hosts a pipeline can pull code from
SOURCE_TYPES = ("Codeup", "Github", "Gitlab", "Gitee", "GenericGit", "AtomGit", "Example")

class TaskStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"

class TaskType(str, Enum):
    BUILD = "build"
    TEST = "test"
    SCAN = "scan"
    DEPLOY = "deploy"
    CUSTOM = "custom"

class TaskStats(BaseModel):
    errors: int = 0
    warnings: int = 0
    info: int = 0

class Task(BaseModel):
    id: str
    name: str
    type: TaskType = TaskType.CUSTOM
    status: TaskStatus = TaskStatus.PENDING
    duration: Optional[str] = None
    logs: List[str] = []
    stats: Optional[TaskStats] = None
    dependencies: List[str] = []  # IDs of sibling tasks that must finish first

class Stage(BaseModel):
    id: str
    name: str
    jobs: List[Task] = []
    width: Optional[int] = None

    def find_task(self, task_id: str) -> Optional[Task]:
        for task in self.jobs:
            if task.id == task_id:
                return task
        return None

    def task_index(self, task_id: str) -> int:
        for i, task in enumerate(self.jobs):
            if task.id == task_id:
                return i
        return -1

class Source(BaseModel):
    id: str
    type: str
    name: str
    repo: Optional[str] = None
    branch: str = "master"

class RunRecord(BaseModel):
    """One entry of a pipeline's run history."""
    run_id: int
    status: TaskStatus
    message: str
    trigger: Optional[str] = None
    duration: Optional[str] = None
    time: str
    branch: str
    commit_id: str
    started_at: Optional[datetime] = None

class Pipeline(BaseModel):
    id: str
    name: str
    stages: List[Stage] = []
    last_run_id: int = 0
    last_run_status: TaskStatus = TaskStatus.PENDING
    last_run_time: Optional[str] = None
    duration: Optional[str] = None
    author: Optional[str] = None
    branch: str = "master"
    sources: List[Source] = []
    history: List[RunRecord] = []  # newest first

    def find_stage(self, stage_id: str) -> Optional[Stage]:
        for stage in self.stages:
            if stage.id == stage_id:
                return stage
        return None

class PipelineSummary(BaseModel):
    """Row shown in the pipeline list."""
    id: str
    name: str
    last_run_id: int
    last_run_status: TaskStatus
    last_run_time: Optional[str] = None
    duration: Optional[str] = None
    author: Optional[str] = None
    branch: str

    class Config:
        from_attributes = True
