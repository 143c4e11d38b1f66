"""
Database persistence for saved pipelines.
"""

import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from studio.src.models.flow import Pipeline, Stage, Source, RunRecord, TaskStatus
from studio.src.models.pipeline import PipelineRecord

logger = logging.getLogger(__name__)

async def save_pipeline_record(db: AsyncSession, pipeline: Pipeline) -> PipelineRecord:
    """Insert or update the stored copy of a pipeline."""
    record = await db.get(PipelineRecord, pipeline.id)
    if record is None:
        record = PipelineRecord(id=pipeline.id)
        db.add(record)

    record.name = pipeline.name
    record.branch = pipeline.branch
    record.author = pipeline.author
    record.last_run_id = pipeline.last_run_id
    record.last_run_status = pipeline.last_run_status.value
    record.last_run_time = pipeline.last_run_time
    record.duration = pipeline.duration
    record.stages = [stage.model_dump(mode="json") for stage in pipeline.stages]
    record.sources = [source.model_dump(mode="json") for source in pipeline.sources]
    record.history = [run.model_dump(mode="json") for run in pipeline.history]

    await db.commit()
    logger.info(f"Persisted pipeline {pipeline.id}")
    return record

def record_to_pipeline(record: PipelineRecord) -> Pipeline:
    return Pipeline(
        id=record.id,
        name=record.name,
        branch=record.branch or "master",
        author=record.author,
        last_run_id=record.last_run_id or 0,
        last_run_status=TaskStatus(record.last_run_status or "pending"),
        last_run_time=record.last_run_time,
        duration=record.duration,
        stages=[Stage.model_validate(s) for s in record.stages or []],
        sources=[Source.model_validate(s) for s in record.sources or []],
        history=[RunRecord.model_validate(r) for r in record.history or []],
    )

async def load_pipeline_records(db: AsyncSession) -> List[Pipeline]:
    """All saved pipelines, oldest first."""
    result = await db.execute(
        select(PipelineRecord).order_by(PipelineRecord.created_at)
    )
    return [record_to_pipeline(r) for r in result.scalars().all()]
