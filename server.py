import logging
import math
from collections import deque
from enum import Enum
from numbers import Integral
from typing import Deque, List, Sequence, Tuple

logger = logging.getLogger(__name__)


class InvalidConfiguration(ValueError):
    """Raised for a malformed server pool or policy setup."""


class InvalidInput(ValueError):
    """Raised for a task magnitude a policy cannot assign."""


class LoadModel(Enum):
    SCALAR = "scalar"      # Plain accumulator of assigned magnitudes
    WINDOWED = "windowed"  # FIFO queue, tasks expire once processed


class SimulatedServer:
    """Server with an assigned-load counter and a fixed processing capability.

    In the windowed model every task is queued with the time it finishes,
    assuming the server works through its queue in arrival order at
    ``capability`` load units per time unit.
    """

    def __init__(self, server_id: int, capability: int = 1, load_model: LoadModel = LoadModel.SCALAR):
        self.id = server_id
        self.capability = capability
        self.load_model = load_model
        self.current_load = 0.0
        self.assigned_load = 0.0  # Lifetime total, untouched by expiry
        self.total_tasks_processed = 0
        self.busy_until = 0.0
        # (arrival_time, magnitude, finish_time)
        self.queue: Deque[Tuple[float, float, float]] = deque()

    def add_load(self, magnitude: float, arrival_time: float = 0.0):
        """Add a task's magnitude to this server."""
        if not math.isfinite(magnitude) or magnitude < 0:
            raise InvalidInput(f"Task magnitude must be finite and non-negative, got {magnitude}")

        self.current_load += magnitude
        self.assigned_load += magnitude
        self.total_tasks_processed += 1

        if self.load_model is LoadModel.WINDOWED:
            start = max(arrival_time, self.busy_until)
            self.busy_until = start + magnitude / self.capability
            self.queue.append((arrival_time, magnitude, self.busy_until))

    def expire(self, now: float) -> int:
        """Drop queued tasks finished by ``now``. Returns how many were dropped."""
        if self.load_model is not LoadModel.WINDOWED:
            return 0

        expired = 0
        while self.queue and self.queue[0][2] <= now:
            _, magnitude, _ = self.queue.popleft()
            self.current_load = max(0.0, self.current_load - magnitude)
            expired += 1
        if not self.queue:
            # Clears float drift left over from repeated subtraction
            self.current_load = 0.0
        return expired

    def reset(self):
        self.current_load = 0.0
        self.assigned_load = 0.0
        self.total_tasks_processed = 0
        self.busy_until = 0.0
        self.queue.clear()

    def get_load(self) -> float:
        return self.current_load

    def get_assigned_load(self) -> float:
        return self.assigned_load

    def get_id(self) -> int:
        return self.id

    def get_capability(self) -> int:
        return self.capability

    def get_active_tasks(self) -> int:
        if self.load_model is LoadModel.WINDOWED:
            return len(self.queue)
        return self.total_tasks_processed

    def get_utilization(self) -> float:
        return self.current_load / self.capability

    def __repr__(self) -> str:
        return f"SimulatedServer(id={self.id}, capability={self.capability}, load={self.current_load:.2f})"


def initialize_servers(capabilities: Sequence[int], load_model: LoadModel = LoadModel.SCALAR) -> List[SimulatedServer]:
    """Build a pool with dense 0-based ids, one server per capability."""
    if len(capabilities) < 1:
        raise InvalidConfiguration("Server pool must contain at least one server")
    for index, capability in enumerate(capabilities):
        if isinstance(capability, bool) or not isinstance(capability, Integral) or capability <= 0:
            raise InvalidConfiguration(
                f"Server {index} capability must be a positive integer, got {capability!r}")

    logger.debug("Initializing %d servers (%s load model)", len(capabilities), load_model.value)
    return [SimulatedServer(i, int(capability), load_model) for i, capability in enumerate(capabilities)]
