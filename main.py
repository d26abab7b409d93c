import argparse
import logging
import sys
import time
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
import simpy

from algorithms import ACO_ITERATIONS, POLICIES
from balancer import LoadBalancer
from server import InvalidConfiguration, InvalidInput, LoadModel
from visualization import build_results_table, print_server_stats, print_table
from workload_generator import MAX_TASK_LOAD, MIN_TASK_LOAD, WorkloadGenerator

logger = logging.getLogger(__name__)

MODES = ("comparison", "execution-time", "simulation")
VALUE_LABELS = {
    "comparison": "Total Load",
    "execution-time": "Execution Time (us)",
    "simulation": "Simulated Time",
}
SIMULATED_TICK = 1.0  # One task arrives per simulated time unit


@dataclass
class SimulationConfig:
    """Settings for one comparison of all policies.

    Attributes:
        mode: Which measurement to tabulate, one of ``MODES``
        num_servers: Size of the server pool
        task_counts: Task stream lengths, one table column each
        min_capability: Lower bound for generated server capabilities
        max_capability: Upper bound for generated server capabilities
        min_load: Lower bound for generated task magnitudes
        max_load: Upper bound for generated task magnitudes
        aco_iterations: Iterations per ACO pass
        seed: Root seed; ``None`` draws fresh entropy
        workers: Processes used to run independent simulations
        load_model: Server load representation
        show_stats: Also print each policy's final load distribution
        log_level: Root logging level for the run
    """

    mode: str = "comparison"
    num_servers: int = 20
    task_counts: List[int] = field(default_factory=lambda: [100, 1000, 10000])
    min_capability: int = 1
    max_capability: int = 100
    min_load: float = MIN_TASK_LOAD
    max_load: float = MAX_TASK_LOAD
    aco_iterations: int = ACO_ITERATIONS
    seed: Optional[int] = None
    workers: int = 1
    load_model: LoadModel = LoadModel.SCALAR
    show_stats: bool = False
    log_level: int = logging.WARNING

    def validate(self):
        if self.mode not in MODES:
            raise InvalidConfiguration(f"Unknown mode {self.mode!r}")
        if self.num_servers < 1:
            raise InvalidConfiguration("Number of servers must be at least 1")
        if not self.task_counts or any(n <= 0 for n in self.task_counts):
            raise InvalidConfiguration("Task counts must be positive")
        if not 0 < self.min_capability <= self.max_capability:
            raise InvalidConfiguration("Capabilities must satisfy 0 < min <= max")
        if not 0 < self.min_load <= self.max_load:
            raise InvalidConfiguration("Task loads must satisfy 0 < min <= max")
        if self.aco_iterations < 1:
            raise InvalidConfiguration("ACO needs at least one iteration")
        if self.workers < 1:
            raise InvalidConfiguration("Workers must be at least 1")


@dataclass
class SimulationJob:
    """One policy over one task stream; independent of every other job."""

    mode: str
    policy: str
    num_tasks: int
    task_loads: List[float]
    capabilities: List[int]
    seed: np.random.SeedSequence
    aco_iterations: int = ACO_ITERATIONS
    load_model: LoadModel = LoadModel.SCALAR


@dataclass
class JobResult:
    policy: str
    num_tasks: int
    value: float
    throughput: float
    stats: Dict[str, float]


def _make_balancer(job: SimulationJob, keep_policy_state: bool = False) -> LoadBalancer:
    options = {"iterations": job.aco_iterations} if job.policy == "aco" else {}
    return LoadBalancer(job.policy, job.capabilities, rng=np.random.default_rng(job.seed),
                        load_model=job.load_model, keep_policy_state=keep_policy_state, **options)


def run_comparison(job: SimulationJob) -> Tuple[LoadBalancer, float, float]:
    """Single pass over the whole stream; elapsed time is the task count."""
    balancer = _make_balancer(job)
    balancer.run(job.task_loads)
    return balancer, balancer.get_total_load(), balancer.get_throughput(job.num_tasks)


def run_execution_time(job: SimulationJob) -> Tuple[LoadBalancer, float, float]:
    """Wall-clock microseconds of a single pass."""
    balancer = _make_balancer(job)
    start = time.perf_counter()
    balancer.run(job.task_loads)
    elapsed = time.perf_counter() - start
    return balancer, elapsed * 1e6, balancer.get_throughput(elapsed)


def simulate_arrivals(env: simpy.Environment, balancer: LoadBalancer, task_loads: Iterable[float]):
    """SimPy process feeding one task per tick into ``balancer``."""
    for task_load in task_loads:
        expired = balancer.expire(env.now)
        if expired:
            logger.debug("t=%.0f: %d tasks finished", env.now, expired)
        balancer.run([task_load], arrival_time=env.now)
        yield env.timeout(SIMULATED_TICK)


def run_simulation(job: SimulationJob) -> Tuple[LoadBalancer, float, float]:
    """Tasks arrive over simulated time; policy state persists between arrivals."""
    env = simpy.Environment()
    balancer = _make_balancer(job, keep_policy_state=True)
    env.process(simulate_arrivals(env, balancer, job.task_loads))
    env.run()
    return balancer, env.now, balancer.get_throughput(env.now)


MODE_RUNNERS = {
    "comparison": run_comparison,
    "execution-time": run_execution_time,
    "simulation": run_simulation,
}


def execute_job(job: SimulationJob) -> JobResult:
    balancer, value, throughput = MODE_RUNNERS[job.mode](job)
    logger.info("%s with %d tasks: %s=%.4g, throughput=%.4g",
                balancer.policy_name, job.num_tasks, VALUE_LABELS[job.mode], value, throughput)
    return JobResult(job.policy, job.num_tasks, value, throughput, balancer.get_server_stats())


def build_jobs(config: SimulationConfig) -> List[SimulationJob]:
    """Generate the shared inputs and one job per (task count, policy)."""
    root = np.random.SeedSequence(config.seed)
    workload_seed, *job_seeds = root.spawn(1 + len(config.task_counts) * len(POLICIES))
    generator = WorkloadGenerator(workload_seed)

    if config.mode == "execution-time":
        capabilities = [1] * config.num_servers
    else:
        capabilities = generator.generate_capabilities(
            config.num_servers, config.min_capability, config.max_capability)

    jobs = []
    seeds = iter(job_seeds)
    for num_tasks in config.task_counts:
        task_loads = generator.generate_task_loads(num_tasks, config.min_load, config.max_load)
        logger.info("New workload generated: %d tasks, load range %.1f - %.1f",
                    num_tasks, min(task_loads), max(task_loads))
        for policy in POLICIES:
            jobs.append(SimulationJob(config.mode, policy, num_tasks, task_loads, capabilities,
                                      next(seeds), config.aco_iterations, config.load_model))
    return jobs


def run_all(config: SimulationConfig) -> Tuple[Dict[str, Dict], Dict[str, Dict[str, float]]]:
    """Run every policy over every task count.

    Returns the per-policy results in report form and the load distribution
    of each policy's pool after the last task count.
    """
    config.validate()
    jobs = build_jobs(config)

    if config.workers > 1:
        with ProcessPoolExecutor(max_workers=config.workers) as executor:
            job_results = list(executor.map(execute_job, jobs))
    else:
        job_results = [execute_job(job) for job in jobs]

    results: Dict[str, Dict] = {}
    stats: Dict[str, Dict[str, float]] = {}
    for job_result in job_results:
        name = POLICIES[job_result.policy].name
        entry = results.setdefault(name, {"values": {}, "throughput": float("nan")})
        entry["values"][job_result.num_tasks] = job_result.value
        # The table reports the throughput of the last task count
        entry["throughput"] = job_result.throughput
        stats[name] = job_result.stats
    return results, stats


def parse_args(argv: Optional[Sequence[str]] = None) -> SimulationConfig:
    parser = argparse.ArgumentParser(
        prog="lb-sim", description="Compare load balancing policies on a synthetic workload.")
    parser.add_argument("--mode", choices=MODES, default="comparison", help="What the table measures")
    parser.add_argument("--servers", type=int, default=20, help="Number of servers")
    parser.add_argument("--tasks", type=int, nargs="+", default=[100, 1000, 10000],
                        help="Task counts to simulate")
    parser.add_argument("--min-capability", type=int, default=1)
    parser.add_argument("--max-capability", type=int, default=100)
    parser.add_argument("--min-load", type=float, default=MIN_TASK_LOAD)
    parser.add_argument("--max-load", type=float, default=MAX_TASK_LOAD)
    parser.add_argument("--aco-iterations", type=int, default=ACO_ITERATIONS)
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--workers", type=int, default=1, help="Parallel worker processes")
    parser.add_argument("--load-model", choices=[m.value for m in LoadModel], default=LoadModel.SCALAR.value)
    parser.add_argument("--stats", action="store_true", help="Print final load distribution per policy")
    parser.add_argument("-v", "--verbose", action="count", default=0)
    args = parser.parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose > 1:
        level = logging.DEBUG
    return SimulationConfig(
        mode=args.mode,
        num_servers=args.servers,
        task_counts=args.tasks,
        min_capability=args.min_capability,
        max_capability=args.max_capability,
        min_load=args.min_load,
        max_load=args.max_load,
        aco_iterations=args.aco_iterations,
        seed=args.seed,
        workers=args.workers,
        load_model=LoadModel(args.load_model),
        show_stats=args.stats,
        log_level=level,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    config = parse_args(argv)
    logging.basicConfig(level=config.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        results, stats = run_all(config)
    except (InvalidConfiguration, InvalidInput) as e:
        logger.error("Simulation aborted: %s", e)
        print(f"Error: {e}", file=sys.stderr)
        return 2

    print(f"Load Balancer Simulation ({config.mode}, {config.num_servers} servers)")
    print_table(build_results_table(results, config.task_counts, VALUE_LABELS[config.mode]))
    if config.show_stats:
        print_server_stats(stats)
    return 0


if __name__ == "__main__":
    sys.exit(main())
