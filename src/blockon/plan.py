"""
Run plans

A run plan lists tasks executed one after another on a single runtime::

    tasks:
      - type: count
        max: 10
      - type: permute
        base: [1, 6, 4, 3, 2, 5]
        target: [1, 2, 3, 4, 5, 6]
        delay: 0.5
"""

import json
import logging
from collections import Counter
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .core.errors import PlanError
from .core.future import ExtFuture, adapt
from .executor.runtime import SimpleRuntime
from .tasks.counter import count
from .tasks.permute import DEFAULT_DELAY_SECONDS, permute

logger = logging.getLogger(__name__)


class CountTask(BaseModel):
    """Count from 0 to ``max``"""

    type: Literal["count"] = "count"
    name: Optional[str] = None
    max: int = Field(ge=0)

    def build(self, default_delay: float = DEFAULT_DELAY_SECONDS) -> ExtFuture[int]:
        return adapt(count(self.max))


class PermuteTask(BaseModel):
    """Permute ``base`` into ``target``"""

    type: Literal["permute"] = "permute"
    name: Optional[str] = None
    base: List[int]
    target: List[int]
    delay: Optional[float] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def check_permutation(self) -> "PermuteTask":
        """Base and target must be permutations of each other"""
        if len(self.base) != len(self.target):
            raise ValueError("base and target must have the same length")
        if Counter(self.base) != Counter(self.target):
            raise ValueError("base and target must have the same elements")
        return self

    def build(self, default_delay: float = DEFAULT_DELAY_SECONDS) -> ExtFuture[int]:
        delay = default_delay if self.delay is None else self.delay
        return permute(self.base, self.target, delay)


TaskType = Union[CountTask, PermuteTask]


def parse_task(data: Dict[str, Any]) -> TaskType:
    """Parse task from dictionary"""
    task_type = data.get("type")

    if task_type == "count":
        return CountTask(**data)
    elif task_type == "permute":
        return PermuteTask(**data)
    else:
        raise ValueError(f"Unknown task type: {task_type}")


class RunPlan(BaseModel):
    """Sequence of tasks for one runtime"""

    tasks: List[TaskType] = Field(default_factory=list)

    @field_validator("tasks", mode="before")
    @classmethod
    def parse_tasks(cls, v):
        """Parse task list"""
        if v is None:
            return []
        return [parse_task(task) if isinstance(task, dict) else task for task in v]


class TaskResult(BaseModel):
    """Outcome of one plan task"""

    name: str
    type: str
    cancellable: bool
    result: Any


def load_plan(path: Union[str, Path]) -> RunPlan:
    """
    Load a run plan from a YAML or JSON file

    Raises:
        PlanError: missing file, unsupported format or invalid content
    """
    path = Path(path)
    if not path.exists():
        raise PlanError(f"Plan file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        if path.suffix.lower() in [".yaml", ".yml"]:
            data = yaml.safe_load(f)
        elif path.suffix.lower() == ".json":
            data = json.load(f)
        else:
            raise PlanError(f"Unsupported plan file format: {path.suffix}")

    if not isinstance(data, dict):
        raise PlanError(f"Plan file must contain a mapping: {path}")

    try:
        return RunPlan(**data)
    except (ValidationError, ValueError) as e:
        raise PlanError(f"Invalid plan {path}: {e}", {"path": str(path)})


def execute_plan(
    runtime: SimpleRuntime,
    plan: RunPlan,
    default_delay: float = DEFAULT_DELAY_SECONDS,
) -> List[TaskResult]:
    """Run every task of ``plan`` to completion, in order"""
    results = []
    for index, task in enumerate(plan.tasks):
        name = task.name or f"{task.type}-{index}"
        future = task.build(default_delay)
        logger.info(f"Executing task {name}")
        value = runtime.block_on(future)
        results.append(
            TaskResult(
                name=name,
                type=task.type,
                cancellable=future.cancellable,
                result=value,
            )
        )
    return results
