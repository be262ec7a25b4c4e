"""
Visualization - Bar charts of group parity ratios.

One panel per model; bars grouped by metric with one bar per protected
group. Reference lines mark parity (1.0) and the [threshold, 1/threshold]
band of the four-fifths rule.
"""

import io
from typing import List, Optional

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np

from shared.constants import FOUR_FIFTHS_THRESHOLD, VIZ_DEFAULTS
from shared.logging import get_logger
from shared.schemas import FairnessReport

logger = get_logger(__name__)


def plot_fairness_comparison(
    report: FairnessReport,
    threshold: float = FOUR_FIFTHS_THRESHOLD,
    models: Optional[List[str]] = None,
    save_path: Optional[str] = None,
) -> plt.Figure:
    """
    Compare parity ratios across groups, metrics and models.

    Args:
        report: FairnessReport to plot
        threshold: Lower edge of the acceptable band
        models: Models to include (None = all in the report)
        save_path: Path to save plot (optional)

    Returns:
        matplotlib Figure object
    """
    frame = report.to_frame()
    models = models or report.models
    metrics = report.metrics
    groups = report.groups
    colors = VIZ_DEFAULTS["color_scheme"]

    n_panels = max(1, len(models))
    fig, axes = plt.subplots(
        n_panels, 1,
        figsize=(max(8, len(metrics) * 2.5), 4 * n_panels),
        squeeze=False,
    )

    x = np.arange(len(metrics))
    width = 0.8 / max(1, len(groups))

    for ax, model_id in zip(axes[:, 0], models):
        model_rows = frame[frame["model"] == model_id]

        for i, group in enumerate(groups):
            values = []
            for metric in metrics:
                match = model_rows[(model_rows["group"] == group) & (model_rows["metric"] == metric)]
                values.append(match["ratio"].iloc[0] if not match.empty else np.nan)

            offset = (i - len(groups) / 2) * width + width / 2
            bars = ax.bar(x + offset, values, width, label=str(group), alpha=0.8)

            for bar, value in zip(bars, values):
                if np.isnan(value):
                    continue
                ax.text(
                    bar.get_x() + bar.get_width() / 2,
                    bar.get_height(),
                    f'{value:.2f}',
                    ha='center',
                    va='bottom',
                    fontsize=7,
                )

        ax.axhline(y=1.0, color=colors["neutral"], linestyle='-', alpha=0.7)
        ax.axhline(y=threshold, color=colors["unfair"], linestyle='--', alpha=0.6,
                   label=f'Threshold ({threshold:.2f})')
        ax.axhline(y=1.0 / threshold, color=colors["unfair"], linestyle='--', alpha=0.6)

        ax.set_ylabel('Ratio to privileged group', fontsize=11)
        ax.set_title(
            f'{model_id} (privileged: {report.privileged_group}, cutoff: {report.cutoff})',
            fontsize=12, fontweight='bold',
        )
        ax.set_xticks(x)
        ax.set_xticklabels([m.replace('_', ' ').title() for m in metrics], rotation=15, ha='right')
        ax.legend(fontsize=8)
        ax.grid(True, alpha=0.3, axis='y')

    plt.tight_layout()

    if save_path:
        fig.savefig(save_path, dpi=VIZ_DEFAULTS["dpi"], bbox_inches='tight')
        logger.info(f"Saved fairness comparison plot to {save_path}")

    return fig


def render_plot(
    report: FairnessReport,
    threshold: float = FOUR_FIFTHS_THRESHOLD,
) -> bytes:
    """Render the comparison plot to PNG bytes."""
    fig = plot_fairness_comparison(report, threshold=threshold)
    buffer = io.BytesIO()
    try:
        fig.savefig(buffer, format="png", dpi=VIZ_DEFAULTS["dpi"], bbox_inches="tight")
    finally:
        plt.close(fig)
    return buffer.getvalue()
