from typing import Dict, List, Mapping, Sequence

import pandas as pd

COLUMN_WIDTH = 24
INDEX_LABEL = "Load Balancing Algorithm"
THROUGHPUT_COLUMN = "Throughput"


def task_column(num_tasks: int) -> str:
    return f"Num Tasks: {num_tasks}"


def build_results_table(results: Mapping[str, Mapping], task_counts: Sequence[int],
                        value_label: str) -> pd.DataFrame:
    """One row per policy, one column per task count plus throughput.

    ``results`` maps a policy name to ``{"values": {num_tasks: value},
    "throughput": float}``. Rows keep the order of ``results``.
    """
    rows = []
    for policy_name, result in results.items():
        row = {task_column(n): result["values"].get(n, float("nan")) for n in task_counts}
        row[THROUGHPUT_COLUMN] = result["throughput"]
        rows.append(row)

    df = pd.DataFrame(rows, index=pd.Index(list(results), name=INDEX_LABEL),
                      columns=[task_column(n) for n in task_counts] + [THROUGHPUT_COLUMN])
    df.attrs["value_label"] = value_label
    return df


def _format_cell(value) -> str:
    if pd.isna(value):
        return "undefined"
    return f"{value:.6g}"


def render_table(df: pd.DataFrame, width: int = COLUMN_WIDTH) -> str:
    """Fixed-column text table: policy name left-aligned, numbers right-aligned."""
    value_label = df.attrs.get("value_label", "")
    task_columns = [c for c in df.columns if c != THROUGHPUT_COLUMN]

    lines: List[str] = []
    header = INDEX_LABEL.ljust(width) + "".join(c.rjust(width) for c in df.columns)
    lines.append(header)
    sub_header = "".ljust(width) + "".join(value_label.rjust(width) for _ in task_columns)
    lines.append(sub_header.rstrip())
    lines.append("-" * len(header))

    for policy_name, row in df.iterrows():
        cells = "".join(_format_cell(row[c]).rjust(width) for c in df.columns)
        lines.append(str(policy_name).ljust(width) + cells)
    return "\n".join(lines)


def print_table(df: pd.DataFrame):
    print(render_table(df))


def summarize_servers(stats: Dict[str, Dict[str, float]]) -> pd.DataFrame:
    """Per-policy load distribution frame from ``LoadBalancer.get_server_stats``."""
    df = pd.DataFrame.from_dict(stats, orient="index")
    df.index.name = INDEX_LABEL
    return df


def print_server_stats(stats: Dict[str, Dict[str, float]]):
    """Print the load distribution of each policy's final pool."""
    df = summarize_servers(stats)
    print("\nServer Load Distribution:")
    print(df.to_string(float_format=lambda v: f"{v:.2f}"))
