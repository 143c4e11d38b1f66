"""
Chain layout for the tasks of a single stage.

Tasks are split into chains: serial paths linked by direct dependencies.
Chains are drawn as parallel tracks stacked in discovery order, and the
stage container is sized to fit the longest one.
"""

from typing import List, Sequence, Set

from studio.src.models.flow import Task, DEFAULT_STAGE_WIDTH

# Layout constants (pixels)
CARD_WIDTH = 200
CONNECTOR_WIDTH = 32
BRACKET_WIDTH = 16
STAGE_PADDING = 32
MIN_STAGE_WIDTH = DEFAULT_STAGE_WIDTH
MIN_RESIZE_WIDTH = 250

def local_dependencies(task: Task, local_ids: Set[str]) -> List[str]:
    """Dependencies of `task` that resolve to a task in the same stage."""
    return [dep for dep in task.dependencies if dep in local_ids]

def remote_dependencies(task: Task, local_ids: Set[str]) -> List[str]:
    """Dependencies of `task` that point outside the stage."""
    return [dep for dep in task.dependencies if dep not in local_ids]

def is_root(task: Task, local_ids: Set[str]) -> bool:
    return not local_dependencies(task, local_ids)

def organize_into_chains(tasks: Sequence[Task]) -> List[List[Task]]:
    """
    Partition a stage's tasks into ordered chains.

    Every root (no same-stage dependency) starts a chain in stage order.
    The chain follows the first task that depends on its tail until no
    child exists or the child was already placed. Tasks never reached from
    a root, such as members of a cycle, become singleton chains.
    """
    local_ids = {task.id for task in tasks}
    visited: Set[str] = set()
    chains: List[List[Task]] = []

    for root in tasks:
        if root.id in visited or not is_root(root, local_ids):
            continue

        chain = [root]
        visited.add(root.id)
        current = root

        while True:
            child = next(
                (t for t in tasks if current.id in t.dependencies),
                None,
            )
            if child is None or child.id in visited:
                break
            chain.append(child)
            visited.add(child.id)
            current = child

        chains.append(chain)

    # Sweep up tasks unreachable from any root
    for task in tasks:
        if task.id not in visited:
            visited.add(task.id)
            chains.append([task])

    return chains

def chain_width(length: int) -> int:
    """Width needed to draw a serial chain of `length` task cards."""
    return (
        length * CARD_WIDTH
        + max(0, length - 1) * CONNECTOR_WIDTH
        + 2 * BRACKET_WIDTH
    )

def minimum_stage_width(tasks: Sequence[Task]) -> int:
    """Smallest stage width that shows the widest chain without overlap."""
    chains = organize_into_chains(tasks)
    if not chains:
        return MIN_STAGE_WIDTH

    widest = max(chain_width(len(chain)) for chain in chains)
    return max(MIN_STAGE_WIDTH, widest + STAGE_PADDING)

def clamp_resize_width(width: int) -> int:
    """Manual resizes may shrink below the auto-fit width, down to a floor."""
    return max(MIN_RESIZE_WIDTH, width)
