"""
In-memory pipeline catalogue and edit drafts.
"""

import logging
import uuid
from typing import Dict, List, Optional, Any

from studio.src.config import get_settings
from studio.src.models.flow import (
    Pipeline,
    Stage,
    Task,
    TaskStats,
    TaskStatus,
    TaskType,
    Source,
    RunRecord,
)
from studio.src.services.flow_editor import recompute_width
from studio.src.services.template_loader import build_stages

logger = logging.getLogger(__name__)

class PipelineNotFoundError(Exception):
    pass

def sample_pipelines() -> List[Pipeline]:
    """The catalogue a fresh workspace starts with."""
    java = Pipeline(
        id="p-001",
        name="My-Java-Pipeline-01",
        last_run_id=2,
        last_run_status=TaskStatus.FAILED,
        last_run_time="2025-12-06 19:35",
        duration="1m 5s",
        author="dev@aliyun.com",
        branch="master",
        sources=[
            Source(
                id="src-1", type="Codeup", name="flow-example/spring-boot",
                repo="flow-example/spring-boot", branch="master",
            ),
        ],
        history=[
            RunRecord(
                run_id=2, status=TaskStatus.FAILED, message="Update README.md",
                trigger="ap7430v1p@aliyun.com", duration="1m 5s", time="2025-12-06 19:35",
                branch="master", commit_id="7b3c2d",
            ),
            RunRecord(
                run_id=1, status=TaskStatus.FAILED, message="Initial commit",
                trigger="ap7430v1p@aliyun.com", duration="1m 21s", time="2025-12-06 19:21",
                branch="master", commit_id="6c4d3e",
            ),
        ],
        stages=[
            Stage(id="stage-test", name="Test", jobs=[
                Task(
                    id="job-scan", name="Java Code Scan", type=TaskType.SCAN,
                    status=TaskStatus.SUCCESS, duration="1m 5s", stats=TaskStats(),
                ),
                Task(
                    id="job-unit", name="Maven Unit Test", type=TaskType.TEST,
                    status=TaskStatus.FAILED, duration="17s",
                ),
            ]),
            Stage(id="stage-build", name="Build", jobs=[
                Task(id="job-build-java", name="Java Build", type=TaskType.BUILD, duration="0s"),
            ]),
            Stage(id="stage-deploy", name="Deploy", jobs=[
                Task(id="job-deploy", name="Deploy to K8s", type=TaskType.DEPLOY, duration="0s"),
            ]),
        ],
    )
    frontend = Pipeline(
        id="p-002",
        name="Frontend-React-Build",
        last_run_id=15,
        last_run_status=TaskStatus.SUCCESS,
        last_run_time="2025-12-06 14:20",
        duration="2m 12s",
        author="admin@aliyun.com",
        branch="feature/new-ui",
        stages=[
            Stage(id="stage-install", name="Install", jobs=[
                Task(id="job-npm-install", name="NPM Install", type=TaskType.BUILD, status=TaskStatus.SUCCESS),
            ]),
            Stage(id="stage-check", name="Check", jobs=[
                Task(id="job-eslint", name="ESLint", type=TaskType.SCAN, status=TaskStatus.SUCCESS),
                Task(id="job-jest", name="Jest Tests", type=TaskType.TEST, status=TaskStatus.SUCCESS),
            ]),
        ],
    )
    return [java, frontend]

class Workspace:
    """Pipelines known to this process plus the drafts being edited."""

    def __init__(self, pipelines: Optional[List[Pipeline]] = None):
        self.pipelines: Dict[str, Pipeline] = {p.id: p for p in pipelines or []}
        self.drafts: Dict[str, Pipeline] = {}

    def list_pipelines(self) -> List[Pipeline]:
        return list(self.pipelines.values())

    def get_pipeline(self, pipeline_id: str) -> Pipeline:
        pipeline = self.pipelines.get(pipeline_id)
        if pipeline is None:
            raise PipelineNotFoundError(f"Pipeline '{pipeline_id}' not found")
        return pipeline

    def open_draft(self, pipeline_id: str) -> Pipeline:
        """
        Start editing a copy of a catalogue pipeline.
        A draft that is already open is returned as it is, unsaved edits included.
        """
        if pipeline_id in self.drafts:
            logger.debug(f"Reusing open draft of pipeline {pipeline_id}")
            return self.drafts[pipeline_id]

        draft = self.get_pipeline(pipeline_id).model_copy(deep=True)
        for stage in draft.stages:
            recompute_width(stage)
        self.drafts[pipeline_id] = draft
        return draft

    def open_draft_from_template(self, template: Dict[str, Any], name: Optional[str] = None) -> Pipeline:
        """Start a new pipeline from a template's stages."""
        draft = Pipeline(
            id=f"p-new-{uuid.uuid4().hex[:8]}",
            name=name or f"My {template['name']} Pipeline",
            stages=build_stages(template),
        )
        self.drafts[draft.id] = draft
        logger.info(f"Opened draft {draft.id} from template {template['name']}")
        return draft

    def get_draft(self, pipeline_id: str) -> Pipeline:
        draft = self.drafts.get(pipeline_id)
        if draft is None:
            raise PipelineNotFoundError(f"No open draft for pipeline '{pipeline_id}'")
        return draft

    def discard_draft(self, pipeline_id: str) -> None:
        self.get_draft(pipeline_id)
        del self.drafts[pipeline_id]

    def commit_draft(self, pipeline_id: str) -> Pipeline:
        """Copy the draft into the catalogue. The draft stays open."""
        saved = self.get_draft(pipeline_id).model_copy(deep=True)
        self.pipelines[pipeline_id] = saved
        logger.info(f"Saved pipeline {pipeline_id} ({len(saved.stages)} stages)")
        return saved

_workspace: Optional[Workspace] = None

def get_workspace() -> Workspace:
    """Process-wide workspace, created on first use."""
    global _workspace
    if _workspace is None:
        seed = get_settings().seed_sample_pipelines
        _workspace = Workspace(sample_pipelines() if seed else [])
    return _workspace
