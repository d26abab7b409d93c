import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence, Type

import numpy as np

from server import InvalidConfiguration, InvalidInput, SimulatedServer

logger = logging.getLogger(__name__)

# ACO algorithm parameters
ALPHA = 1.0                       # Pheromone weight
BETA = 2.0                        # Heuristic weight
PHEROMONE_EVAPORATION_RATE = 0.5  # rho
PHEROMONE_DEPOSIT_AMOUNT = 1.0    # Q
INITIAL_PHEROMONE = 1.0
PHEROMONE_MIN = 1e-12             # Entries never reach zero
ACO_ITERATIONS = 100


class LoadBalancingPolicy(ABC):
    """Maps a task stream onto servers by mutating their loads."""

    name = "Policy"

    def __init__(self, rng: Optional[np.random.Generator] = None):
        self.rng = rng if rng is not None else np.random.default_rng()

    @abstractmethod
    def assign(self, servers: List[SimulatedServer], task_loads: Sequence[float], arrival_time: float = 0.0):
        """Assign every task in ``task_loads`` to exactly one server."""


def find_least_loaded(servers: List[SimulatedServer]) -> int:
    """Index of the minimum-load server; the first one wins ties."""
    min_load = servers[0].get_load()
    min_load_server = servers[0].get_id()
    for server in servers:
        if server.get_load() < min_load:
            min_load = server.get_load()
            min_load_server = server.get_id()
    return min_load_server


class RandomPolicy(LoadBalancingPolicy):
    name = "Random"

    def assign(self, servers, task_loads, arrival_time=0.0):
        for task_load in task_loads:
            random_server = int(self.rng.integers(0, len(servers)))
            servers[random_server].add_load(task_load, arrival_time)
            logger.debug("Random: Selected server %d", random_server)


class RoundRobinPolicy(LoadBalancingPolicy):
    name = "Round-Robin"

    def __init__(self, rng=None):
        super().__init__(rng)
        self.current_server = 0

    def assign(self, servers, task_loads, arrival_time=0.0):
        for task_load in task_loads:
            servers[self.current_server].add_load(task_load, arrival_time)
            logger.debug("RR: Selected server %d", self.current_server)
            self.current_server = (self.current_server + 1) % len(servers)


class WeightedRoundRobinPolicy(LoadBalancingPolicy):
    """Least-loaded selection that lags one task behind.

    The cursor is recomputed *after* each assignment, so the first task
    always lands on server 0.
    """

    name = "Weighted Round-Robin"

    def __init__(self, rng=None):
        super().__init__(rng)
        self.current_server: Optional[int] = None

    def assign(self, servers, task_loads, arrival_time=0.0):
        if self.current_server is None:
            self.current_server = servers[0].get_id()
        for task_load in task_loads:
            servers[self.current_server].add_load(task_load, arrival_time)
            logger.debug("WRR: Selected server %d", self.current_server)
            self.current_server = find_least_loaded(servers)


class ActiveClusteringPolicy(LoadBalancingPolicy):
    name = "Active Clustering"

    def assign(self, servers, task_loads, arrival_time=0.0):
        for task_load in task_loads:
            min_load_server = find_least_loaded(servers)
            servers[min_load_server].add_load(task_load, arrival_time)
            logger.debug("AC: Selected server %d", min_load_server)


def initialize_pheromones(num_tasks: int, num_servers: int) -> np.ndarray:
    """Uniform ``tasks x servers`` pheromone matrix."""
    return np.full((num_tasks, num_servers), INITIAL_PHEROMONE, dtype=float)


def select_next_server(pheromone_row: np.ndarray, loads: np.ndarray, task_load: float,
                       rng: np.random.Generator, alpha: float = ALPHA, beta: float = BETA) -> int:
    """Roulette-wheel selection over ``pheromone^alpha / (load + task)^beta``."""
    weights = np.power(pheromone_row, alpha) / np.power(loads + task_load, beta)
    cumulative = np.cumsum(weights)
    selection = rng.uniform(0.0, cumulative[-1])

    server_id = int(np.searchsorted(cumulative, selection, side="left"))
    if server_id >= len(loads):
        # Rounding left nothing selected; return the last server
        return len(loads) - 1
    return server_id


def update_pheromones(pheromones: np.ndarray, loads: np.ndarray, task_loads: np.ndarray,
                      rho: float = PHEROMONE_EVAPORATION_RATE,
                      q: float = PHEROMONE_DEPOSIT_AMOUNT) -> np.ndarray:
    """Evaporate every entry, then deposit ``Q / (load + task)`` on every entry.

    Updates ``pheromones`` in place and returns it.
    """
    pheromones *= (1.0 - rho)
    pheromones += q / (loads[np.newaxis, :] + task_loads[:, np.newaxis])
    np.maximum(pheromones, PHEROMONE_MIN, out=pheromones)
    return pheromones


class AntColonyPolicy(LoadBalancingPolicy):
    """Iterative pheromone-based assignment.

    Each iteration places every task by roulette-wheel selection on a working
    copy of the server loads, reinforces the whole matrix against those loads,
    and then starts the next iteration from the starting loads again. Only the
    final iteration's placements are applied to the servers; the matrix carries
    what was learned across iterations.
    """

    name = "Ant Colony Optimization"

    def __init__(self, rng=None, iterations: int = ACO_ITERATIONS, alpha: float = ALPHA,
                 beta: float = BETA, rho: float = PHEROMONE_EVAPORATION_RATE,
                 q: float = PHEROMONE_DEPOSIT_AMOUNT):
        super().__init__(rng)
        if iterations < 1:
            raise InvalidConfiguration(f"ACO needs at least one iteration, got {iterations}")
        if not 0.0 <= rho < 1.0:
            raise InvalidConfiguration(f"Evaporation rate must be in [0, 1), got {rho}")
        if q <= 0:
            raise InvalidConfiguration(f"Deposit quantity must be positive, got {q}")
        self.iterations = iterations
        self.alpha = alpha
        self.beta = beta
        self.rho = rho
        self.q = q
        self.pheromones: Optional[np.ndarray] = None
        self.assignments: Optional[np.ndarray] = None

    def assign(self, servers, task_loads, arrival_time=0.0):
        tasks = np.asarray(task_loads, dtype=float)
        if tasks.size == 0:
            return
        if np.any(~np.isfinite(tasks) | (tasks <= 0)):
            raise InvalidInput("ACO requires finite, strictly positive task magnitudes")

        base_loads = np.array([server.get_load() for server in servers], dtype=float)
        pheromones = initialize_pheromones(len(tasks), len(servers))
        assignments = np.zeros(len(tasks), dtype=int)

        for iteration in range(self.iterations):
            # 1. Move ants
            loads = base_loads.copy()
            for task_id, task_load in enumerate(tasks):
                server_id = select_next_server(pheromones[task_id], loads, task_load,
                                               self.rng, self.alpha, self.beta)
                assignments[task_id] = server_id
                loads[server_id] += task_load

            # 2. Update pheromones against this iteration's loads
            update_pheromones(pheromones, loads, tasks, self.rho, self.q)
            logger.debug("ACO: Iteration %d load spread %.2f-%.2f",
                         iteration, loads.min(), loads.max())

        # 3. Only the last iteration's placements reach the servers
        for task_id, server_id in enumerate(assignments):
            servers[server_id].add_load(float(tasks[task_id]), arrival_time)

        self.pheromones = pheromones
        self.assignments = assignments


POLICIES: Dict[str, Type[LoadBalancingPolicy]] = {
    "random": RandomPolicy,
    "round_robin": RoundRobinPolicy,
    "weighted_round_robin": WeightedRoundRobinPolicy,
    "active_clustering": ActiveClusteringPolicy,
    "aco": AntColonyPolicy,
}


def get_policy_class(policy) -> Type[LoadBalancingPolicy]:
    """Resolve a registry name or policy class."""
    if isinstance(policy, type) and issubclass(policy, LoadBalancingPolicy):
        return policy
    key = str(policy).lower().replace("-", "_")
    if key not in POLICIES:
        raise InvalidConfiguration(
            f"Unknown policy {policy!r}; choose one of {', '.join(POLICIES)}")
    return POLICIES[key]
