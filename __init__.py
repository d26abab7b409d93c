"""
Load Balancer Policy Simulator v1.0.0

Distributes a synthetic stream of variable-sized tasks over a fixed server
pool under Random, Round-Robin, Weighted Round-Robin, Active Clustering and
Ant Colony Optimization (ACO) policies, and compares load and throughput.
"""

from server import SimulatedServer, LoadModel, InvalidConfiguration, InvalidInput, initialize_servers
from algorithms import (
    LoadBalancingPolicy, RandomPolicy, RoundRobinPolicy, WeightedRoundRobinPolicy,
    ActiveClusteringPolicy, AntColonyPolicy, POLICIES, get_policy_class,
    initialize_pheromones, select_next_server, update_pheromones
)
from balancer import LoadBalancer
from workload_generator import WorkloadGenerator, generate_task_loads, generate_capabilities
from visualization import build_results_table, render_table, print_table

__version__ = "1.0.0"
__author__ = "Load Balancer Simulation Team"

__all__ = [
    # Core components
    'SimulatedServer', 'LoadModel', 'initialize_servers',
    'InvalidConfiguration', 'InvalidInput',

    # Policies
    'LoadBalancingPolicy', 'RandomPolicy', 'RoundRobinPolicy',
    'WeightedRoundRobinPolicy', 'ActiveClusteringPolicy', 'AntColonyPolicy',
    'POLICIES', 'get_policy_class',
    'initialize_pheromones', 'select_next_server', 'update_pheromones',

    # Balancer
    'LoadBalancer',

    # Workload
    'WorkloadGenerator', 'generate_task_loads', 'generate_capabilities',

    # Reporting
    'build_results_table', 'render_table', 'print_table',
]
