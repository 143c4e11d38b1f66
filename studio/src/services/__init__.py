from studio.src.services.chain_layout import (
    organize_into_chains,
    minimum_stage_width,
    chain_width,
)
from studio.src.services.flow_editor import (
    FlowEditError,
    StageNotFoundError,
    TaskNotFoundError,
    SourceNotFoundError,
    add_stage,
    delete_stage,
    rename_stage,
    rename_pipeline,
    insert_parallel_task,
    insert_serial_task,
    delete_task,
    update_task,
    move_task,
    resize_stage,
    auto_fit_stage,
    add_source,
    remove_source,
)
from studio.src.services.template_loader import (
    load_templates,
    parse_templates,
    get_template,
    TemplateConfigError,
)
from studio.src.services.workspace import (
    Workspace,
    PipelineNotFoundError,
    get_workspace,
)
from studio.src.services.run_simulator import (
    start_run,
    advance_run,
    stage_summary,
)

__all__ = [
    "organize_into_chains",
    "minimum_stage_width",
    "chain_width",
    "FlowEditError",
    "StageNotFoundError",
    "TaskNotFoundError",
    "SourceNotFoundError",
    "add_stage",
    "delete_stage",
    "rename_stage",
    "rename_pipeline",
    "insert_parallel_task",
    "insert_serial_task",
    "delete_task",
    "update_task",
    "move_task",
    "resize_stage",
    "auto_fit_stage",
    "add_source",
    "remove_source",
    "load_templates",
    "parse_templates",
    "get_template",
    "TemplateConfigError",
    "Workspace",
    "PipelineNotFoundError",
    "get_workspace",
    "start_run",
    "advance_run",
    "stage_summary",
]
