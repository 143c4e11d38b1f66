from studio.src.models.flow import (
    TaskStatus,
    TaskType,
    TaskStats,
    Task,
    Stage,
    Source,
    RunRecord,
    Pipeline,
    PipelineSummary,
)
from studio.src.models.pipeline import PipelineRecord

__all__ = [
    "TaskStatus",
    "TaskType",
    "TaskStats",
    "Task",
    "Stage",
    "Source",
    "RunRecord",
    "Pipeline",
    "PipelineSummary",
    "PipelineRecord",
]
