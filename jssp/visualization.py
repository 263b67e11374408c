import os
from typing import Optional

import matplotlib

matplotlib.use("Agg")  # Must be set before importing pyplot
import matplotlib.pyplot as plt  # noqa: E402

from jssp.models import Schedule  # noqa: E402


def plot_gantt(
    schedule: Schedule,
    save_path: str,
    title: Optional[str] = None,
    show_legend: Optional[bool] = None,
) -> str:
    """Create and save a Gantt chart of ``schedule``.

    One row per machine, one colour per job, every bar labelled with its
    task index. Figure size adapts to the number of machines and jobs; the
    legend is disabled automatically for many jobs unless forced.

    Returns:
        Path of the written image.
    """
    m = len(schedule.machines)
    jobs = sorted({row.job for row in schedule.operations})
    n = len(jobs)

    base_w, base_h = 10, 0.5 * m + 2
    fig, ax = plt.subplots(
        figsize=(min(base_w + n * 0.05, 18), min(base_h, 16)),
        constrained_layout=True,
    )
    cmap = plt.get_cmap("tab20")
    colors = {job: cmap(i % 20) for i, job in enumerate(jobs)}
    for machine, rows in enumerate(schedule.machines):
        for row in rows:
            ax.barh(
                machine,
                row.duration,
                left=row.start,
                height=0.8,
                color=colors[row.job],
                alpha=0.85,
                edgecolor="black",
                linewidth=0.6,
            )
            ax.text(
                row.start + row.duration / 2,
                machine,
                f"{row.job}.{row.task}",
                ha="center",
                va="center",
                fontsize=7,
            )
    ax.set_xlabel("Time", fontsize=12)
    ax.set_ylabel("Machine", fontsize=12)
    ax.set_title(
        title or f"Gantt Chart - makespan = {schedule.makespan}",
        fontsize=14,
        fontweight="bold",
    )
    ax.set_yticks(range(m))
    ax.set_yticklabels([f"M{i}" for i in range(m)])
    ax.grid(True, alpha=0.25, axis="x", linestyle="--", linewidth=0.7)
    ax.set_ylim(-0.5, m - 0.5)
    ax.set_xlim(0, max(schedule.makespan, 1))

    if show_legend is None:
        show_legend = n <= 40
    if show_legend:
        legend_elements = [
            plt.Rectangle(
                (0, 0), 1, 1, facecolor=colors[j], alpha=0.85, edgecolor="black", label=f"Job {j}"
            )
            for j in jobs
        ]
        ax.legend(
            handles=legend_elements,
            bbox_to_anchor=(1.02, 1),
            loc="upper left",
            borderaxespad=0.0,
            fontsize=8,
            frameon=False,
            ncol=1 if n <= 25 else 2 if n <= 50 else 3,
        )

    directory = os.path.dirname(save_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    fig.savefig(save_path, dpi=180)
    plt.close(fig)
    return save_path
