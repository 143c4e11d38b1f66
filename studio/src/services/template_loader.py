"""
Pipeline template loader and validator.
"""

import yaml
from pathlib import Path
from typing import List, Dict, Any, Optional

from studio.src.config import get_settings
from studio.src.models.flow import Stage, Task, TaskType, DEFAULT_STAGE_WIDTH
from studio.src.services.flow_editor import new_stage_id, new_task_id, recompute_width

TASK_TYPES = {t.value for t in TaskType}

class TemplateConfigError(Exception):
    """Raised when template configuration is invalid."""
    pass

def load_templates(path: Optional[str] = None) -> List[Dict[str, Any]]:
    """Read and validate the templates file."""
    path = path or get_settings().templates_path
    try:
        content = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise TemplateConfigError(f"Cannot read templates file {path}: {e}")

    return parse_templates(content)

def parse_templates(yaml_content: str) -> List[Dict[str, Any]]:
    """Parse template YAML from string."""
    try:
        config = yaml.safe_load(yaml_content)
    except yaml.YAMLError as e:
        raise TemplateConfigError(f"Invalid YAML: {e}")

    if not config:
        raise TemplateConfigError("Empty template configuration")

    if not isinstance(config, dict) or not isinstance(config.get("templates"), list):
        raise TemplateConfigError("Template configuration must have a 'templates' list")

    return [validate_template(t, i) for i, t in enumerate(config["templates"])]

def validate_template(template: Dict[str, Any], index: int) -> Dict[str, Any]:
    """Validate a single template entry."""
    if not isinstance(template, dict):
        raise TemplateConfigError(f"Template {index} must be a dictionary")

    for field in ("name", "desc", "icon"):
        if field not in template:
            raise TemplateConfigError(f"Template {index} missing '{field}'")
        if not isinstance(template[field], str):
            raise TemplateConfigError(f"Template {index} '{field}' must be a string")

    # Some templates are listed without a flow yet
    stages = template.get("stages", [])
    if not isinstance(stages, list):
        raise TemplateConfigError(f"Template {index} 'stages' must be a list")

    return {
        "name": template["name"],
        "desc": template["desc"],
        "icon": template["icon"],
        "stages": [validate_stage(s, index, j) for j, s in enumerate(stages)],
    }

def validate_stage(stage: Dict[str, Any], index: int, stage_index: int) -> Dict[str, Any]:
    where = f"Template {index} stage {stage_index}"

    if not isinstance(stage, dict):
        raise TemplateConfigError(f"{where} must be a dictionary")

    if "name" not in stage:
        raise TemplateConfigError(f"{where} missing 'name'")

    jobs = stage.get("jobs")
    if not isinstance(jobs, list):
        raise TemplateConfigError(f"{where} 'jobs' must be a list")

    names = set()
    validated_jobs = []
    for k, job in enumerate(jobs):
        if not isinstance(job, dict) or "name" not in job:
            raise TemplateConfigError(f"{where} job {k} missing 'name'")

        job_type = job.get("type", TaskType.CUSTOM.value)
        if job_type not in TASK_TYPES:
            raise TemplateConfigError(f"{where} job {k} has unknown type '{job_type}'")

        needs = job.get("needs", [])
        if not isinstance(needs, list):
            raise TemplateConfigError(f"{where} job {k} 'needs' must be a list")

        if job["name"] in names:
            raise TemplateConfigError(f"{where} has duplicate job '{job['name']}'")
        names.add(job["name"])
        validated_jobs.append({"name": job["name"], "type": job_type, "needs": needs})

    for job in validated_jobs:
        for need in job["needs"]:
            if need not in names:
                raise TemplateConfigError(f"{where} job '{job['name']}' needs unknown job '{need}'")

    return {
        "name": stage["name"],
        "width": stage.get("width", DEFAULT_STAGE_WIDTH),
        "jobs": validated_jobs,
    }

def get_template(name: str, templates: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
    """Find a template by name, ignoring case."""
    templates = templates if templates is not None else load_templates()
    for template in templates:
        if template["name"].lower() == name.lower():
            return template
    raise TemplateConfigError(f"Template '{name}' not found")

def build_stages(template: Dict[str, Any]) -> List[Stage]:
    """Instantiate a template's stages with fresh identifiers."""
    stages = []
    for stage_config in template["stages"]:
        ids = {job["name"]: new_task_id() for job in stage_config["jobs"]}
        jobs = [
            Task(
                id=ids[job["name"]],
                name=job["name"],
                type=TaskType(job["type"]),
                dependencies=[ids[need] for need in job["needs"]],
            )
            for job in stage_config["jobs"]
        ]
        stage = Stage(
            id=new_stage_id(),
            name=stage_config["name"],
            jobs=jobs,
            width=stage_config["width"],
        )
        recompute_width(stage)
        stages.append(stage)
    return stages
