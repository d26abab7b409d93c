import logging
import math
from numbers import Integral
from typing import Dict, List, Optional, Sequence, Union

import numpy as np

from algorithms import LoadBalancingPolicy, get_policy_class
from server import InvalidConfiguration, InvalidInput, LoadModel, SimulatedServer, initialize_servers

logger = logging.getLogger(__name__)


class LoadBalancer:
    """Owns a server pool and drives one policy over it.

    ``servers`` is either a server count (every capability is 1) or one
    capability per server. A fresh policy instance is built for every
    ``run`` unless ``keep_policy_state`` is set, in which case cursors and
    similar state carry over between runs.
    """

    def __init__(self, policy, servers: Union[int, Sequence[int]],
                 rng: Optional[np.random.Generator] = None, seed: Optional[int] = None,
                 load_model: LoadModel = LoadModel.SCALAR, keep_policy_state: bool = False,
                 **policy_options):
        if isinstance(servers, Integral) and not isinstance(servers, bool):
            if servers < 1:
                raise InvalidConfiguration(f"Number of servers must be at least 1, got {servers}")
            capabilities = [1] * int(servers)
        else:
            try:
                capabilities = list(servers)
            except TypeError:
                raise InvalidConfiguration(
                    f"servers must be a count or a sequence of capabilities, got {servers!r}") from None

        self.policy_class = get_policy_class(policy)
        self.policy_options = policy_options
        self.servers: List[SimulatedServer] = initialize_servers(capabilities, load_model)
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.keep_policy_state = keep_policy_state
        self.policy_instance: Optional[LoadBalancingPolicy] = None
        self.runs = 0

    @property
    def policy_name(self) -> str:
        return self.policy_class.name

    def _make_policy(self) -> LoadBalancingPolicy:
        if self.keep_policy_state and self.policy_instance is not None:
            return self.policy_instance
        return self.policy_class(rng=self.rng, **self.policy_options)

    def run(self, task_loads: Sequence[float], arrival_time: float = 0.0):
        """Run one assignment pass of the policy over ``task_loads``."""
        task_loads = [float(task_load) for task_load in task_loads]
        invalid = [task_load for task_load in task_loads if not math.isfinite(task_load) or task_load < 0]
        if invalid:
            raise InvalidInput(f"Task magnitudes must be finite and non-negative, got {invalid[0]}")

        self.policy_instance = self._make_policy()
        self.policy_instance.assign(self.servers, task_loads, arrival_time)
        self.runs += 1
        logger.debug("%s: assigned %d tasks (run %d)", self.policy_name, len(task_loads), self.runs)

    def expire(self, now: float) -> int:
        """Expire finished tasks on every windowed server."""
        return sum(server.expire(now) for server in self.servers)

    def reset(self):
        for server in self.servers:
            server.reset()
        self.policy_instance = None

    def get_loads(self) -> np.ndarray:
        return np.array([server.get_load() for server in self.servers], dtype=float)

    def get_total_load(self) -> float:
        return math.fsum(server.get_load() for server in self.servers)

    def get_assigned_load(self) -> float:
        """Everything ever assigned since the last reset, including expired tasks."""
        return math.fsum(server.get_assigned_load() for server in self.servers)

    def get_total_capability(self) -> int:
        return sum(server.get_capability() for server in self.servers)

    def get_throughput(self, elapsed: float) -> float:
        """Assigned load per unit of time per unit of capability, ``nan`` if undefined."""
        total_capability = self.get_total_capability()
        if elapsed == 0 or total_capability == 0:
            logger.warning("%s: throughput undefined (elapsed=%s, capability=%s)",
                           self.policy_name, elapsed, total_capability)
            return float("nan")
        return self.get_assigned_load() / elapsed / total_capability

    def get_server_stats(self) -> Dict[str, float]:
        """Load distribution summary across the pool."""
        loads = self.get_loads()
        utilizations = np.array([server.get_utilization() for server in self.servers])
        return {
            "mean_load": float(loads.mean()),
            "std_load": float(loads.std()),
            "min_load": float(loads.min()),
            "max_load": float(loads.max()),
            "mean_utilization": float(utilizations.mean()),
            "active_servers": int(np.count_nonzero(loads)),
        }
