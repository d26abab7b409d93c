from typing import List, Union

import numpy as np

MIN_TASK_LOAD = 1.0
MAX_TASK_LOAD = 10.0


class WorkloadGenerator:
    def __init__(self, seed: Union[int, np.random.SeedSequence, None] = None):
        self.rng = np.random.default_rng(seed)
        self._current: List[float] = []

    def generate_task_loads(self, num_tasks: int, low: float = MIN_TASK_LOAD,
                            high: float = MAX_TASK_LOAD) -> List[float]:
        """Uniform task magnitudes in ``[low, high)``."""
        if num_tasks <= 0:
            raise ValueError("num_tasks must be > 0")
        if not 0 < low <= high:
            raise ValueError(f"Task load range must satisfy 0 < low <= high, got [{low}, {high}]")
        self._current = self.rng.uniform(low, high, size=num_tasks).tolist()
        return self._current.copy()

    def generate_capabilities(self, num_servers: int, min_capability: int,
                              max_capability: int) -> List[int]:
        """Uniform integer capabilities in ``[min_capability, max_capability]``."""
        if num_servers <= 0:
            raise ValueError("num_servers must be > 0")
        if not 0 < min_capability <= max_capability:
            raise ValueError(
                f"Capability range must satisfy 0 < min <= max, got [{min_capability}, {max_capability}]")
        return self.rng.integers(min_capability, max_capability, size=num_servers, endpoint=True).tolist()

    def get_current_workload(self) -> List[float]:
        if not self._current:
            raise RuntimeError("No workload generated yet.")
        return self._current.copy()

    def has_workload(self) -> bool:
        return bool(self._current)


workload_generator = WorkloadGenerator()


def generate_task_loads(num_tasks: int, low: float = MIN_TASK_LOAD, high: float = MAX_TASK_LOAD) -> List[float]:
    return workload_generator.generate_task_loads(num_tasks, low, high)


def generate_capabilities(num_servers: int, min_capability: int, max_capability: int) -> List[int]:
    return workload_generator.generate_capabilities(num_servers, min_capability, max_capability)
