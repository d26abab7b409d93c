"""Tests for the command-line harness."""
import logging

import pytest

from main import SimulationConfig, build_jobs, main, parse_args, run_all
from server import InvalidConfiguration, LoadModel

SMALL = ["--servers", "4", "--tasks", "12", "30", "--aco-iterations", "3", "--seed", "21"]


def small_config(**overrides):
    options = dict(num_servers=4, task_counts=[12, 30], aco_iterations=3, seed=21)
    options.update(overrides)
    return SimulationConfig(**options)


class TestRunAll:

    def test_every_policy_conserves_load(self):
        config = small_config()
        expected = {job.num_tasks: sum(job.task_loads) for job in build_jobs(config)}
        results, stats = run_all(config)
        assert len(results) == 5
        assert set(stats) == set(results)
        for result in results.values():
            for num_tasks, total in result["values"].items():
                assert total == pytest.approx(expected[num_tasks])
            assert result["throughput"] >= 0

    def test_policies_share_inputs(self):
        jobs = build_jobs(small_config())
        for num_tasks in (12, 30):
            streams = {tuple(job.task_loads) for job in jobs if job.num_tasks == num_tasks}
            assert len(streams) == 1
        assert len({tuple(job.capabilities) for job in jobs}) == 1

    def test_seeded_runs_repeat(self):
        first, _ = run_all(small_config())
        second, _ = run_all(small_config())
        assert first == second

    def test_workers_do_not_change_results(self):
        serial, _ = run_all(small_config())
        parallel, _ = run_all(small_config(workers=2))
        assert serial == parallel

    def test_simulation_mode_reports_simulated_time(self):
        results, _ = run_all(small_config(mode="simulation"))
        for result in results.values():
            assert result["values"] == {12: 12.0, 30: 30.0}

    def test_windowed_simulation_releases_load(self):
        config = small_config(mode="simulation", load_model=LoadModel.WINDOWED)
        _, stats = run_all(config)
        total = sum(next(job.task_loads for job in build_jobs(config) if job.num_tasks == 30))
        for policy_stats in stats.values():
            assert policy_stats["mean_load"] * 4 < total

    def test_windowed_simulation_matches_scalar_throughput(self):
        scalar, _ = run_all(small_config(mode="simulation", task_counts=[30]))
        windowed, _ = run_all(small_config(mode="simulation", task_counts=[30],
                                           load_model=LoadModel.WINDOWED))
        for name, result in scalar.items():
            assert result["throughput"] > 0
            assert windowed[name]["throughput"] == pytest.approx(result["throughput"])

    def test_execution_time_uses_uniform_pool(self):
        jobs = build_jobs(small_config(mode="execution-time"))
        assert all(job.capabilities == [1, 1, 1, 1] for job in jobs)

    @pytest.mark.parametrize("overrides", [
        {"num_servers": 0},
        {"task_counts": []},
        {"task_counts": [10, -1]},
        {"min_capability": 0},
        {"min_load": 5.0, "max_load": 1.0},
        {"aco_iterations": 0},
        {"workers": 0},
        {"mode": "bogus"},
    ])
    def test_invalid_config(self, overrides):
        with pytest.raises(InvalidConfiguration):
            run_all(small_config(**overrides))


class TestParseArgs:

    @pytest.mark.parametrize("flags, level", [
        ([], logging.WARNING),
        (["-v"], logging.INFO),
        (["-vv"], logging.DEBUG),
    ])
    def test_verbosity_sets_log_level(self, flags, level):
        assert parse_args(SMALL + flags).log_level == level

    def test_does_not_configure_logging(self, monkeypatch):
        calls = []
        monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
        parse_args(SMALL + ["-vv"])
        assert calls == []

    def test_main_configures_logging(self, monkeypatch, capsys):
        calls = []
        monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
        assert main(SMALL + ["-v"]) == 0
        assert [call["level"] for call in calls] == [logging.INFO]


class TestMain:

    def test_prints_one_table(self, capsys):
        assert main(SMALL) == 0
        out = capsys.readouterr().out
        assert out.count("Load Balancing Algorithm") == 1
        for name in ("Random", "Round-Robin", "Weighted Round-Robin",
                     "Active Clustering", "Ant Colony Optimization"):
            assert name in out
        assert "Num Tasks: 30" in out

    @pytest.mark.parametrize("mode", ["execution-time", "simulation"])
    def test_other_modes(self, mode, capsys):
        assert main(SMALL + ["--mode", mode]) == 0
        assert mode in capsys.readouterr().out

    def test_stats_flag(self, capsys):
        assert main(SMALL + ["--stats", "--load-model", "windowed", "--mode", "simulation"]) == 0
        assert "Server Load Distribution" in capsys.readouterr().out

    def test_bad_configuration_exit_code(self, capsys):
        assert main(["--servers", "0", "--tasks", "5"]) == 2
        assert "Error" in capsys.readouterr().err
