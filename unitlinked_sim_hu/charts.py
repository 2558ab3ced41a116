"""Chart generation for policy projections."""

from pathlib import Path

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import matplotlib.ticker as ticker

from unitlinked_sim_hu.comparison import TopOffer
from unitlinked_sim_hu.simulation import SimulationResult

# Ledger color mapping
LEDGER_COLORS = {
    "invested": "#1f77b4",   # blue
    "client": "#2ca02c",     # green
    "tax_bonus": "#ff7f0e",  # orange
}

SURRENDER_COLOR = "#d62728"
CONTRIBUTION_COLOR = "#7f7f7f"


def _setup_font():
    plt.rcParams["font.family"] = "DejaVu Sans"
    plt.rcParams["axes.unicode_minus"] = False


def _format_million_axis(ax: plt.Axes):
    """Thousands separators on the Y axis, millions on the secondary axis."""
    ax.yaxis.set_major_formatter(
        ticker.FuncFormatter(lambda x, _: f"{x:,.0f}")
    )
    ax_right = ax.secondary_yaxis("right")
    ax_right.yaxis.set_major_formatter(
        ticker.FuncFormatter(lambda x, _: f"{x / 1_000_000:.1f}M" if x != 0 else "0")
    )
    ax_right.set_ylabel("")


def _save(fig, output_path: Path, stem: str, name: str) -> Path:
    output_path.mkdir(parents=True, exist_ok=True)
    suffix = f"-{name}" if name else ""
    filepath = output_path / f"{stem}{suffix}.png"
    fig.tight_layout()
    fig.savefig(filepath, dpi=150)
    plt.close(fig)
    return filepath


def plot_balance(result: SimulationResult, output_path: Path, name: str = "", title: str = "") -> Path:
    """Stacked ledger values per policy year with surrender value and paid-in total.

    Args:
        result: simulate() output with yearly rows.
        output_path: directory to save the PNG.
        name: optional suffix for the output filename (e.g. "fortis" → "balance-fortis.png").
        title: chart title (product label).

    Returns:
        Path to the generated PNG file.
    """
    _setup_font()
    if not result.yearly:
        raise ValueError("Empty projection: no yearly rows to plot")

    fig, ax = plt.subplots(figsize=(14, 8))
    years = [row.year for row in result.yearly]
    ax.stackplot(
        years,
        [row.ending_invested_value for row in result.yearly],
        [row.ending_client_value for row in result.yearly],
        [row.ending_tax_bonus_value for row in result.yearly],
        labels=["Befektetési számla", "Ügyfélszámla", "Adójóváírás számla"],
        colors=[LEDGER_COLORS["invested"], LEDGER_COLORS["client"], LEDGER_COLORS["tax_bonus"]],
        alpha=0.6,
    )
    ax.plot(years, [row.surrender_value for row in result.yearly],
            color=SURRENDER_COLOR, linewidth=2, label="Visszavásárlási érték")
    ax.plot(years, [row.total_contributions for row in result.yearly],
            color=CONTRIBUTION_COLOR, linewidth=1.8, linestyle="--", label="Befizetések összesen")

    ax.set_xlabel("Biztosítási év")
    ax.set_ylabel(f"Érték ({result.currency})")
    ax.set_title(title or "Szerződés értékének alakulása")
    ax.legend(loc="upper left")
    ax.grid(True, alpha=0.3)
    _format_million_axis(ax)
    return _save(fig, output_path, "balance", name)


def plot_comparison(offers: list[TopOffer], output_path: Path, name: str = "") -> Path:
    """Horizontal bars of surrender value per product, best offer on top."""
    _setup_font()
    if not offers:
        raise ValueError("No offers to compare")

    fig, ax = plt.subplots(figsize=(12, 1.2 * len(offers) + 2))
    ordered = list(reversed(offers))
    labels = [o.label for o in ordered]
    positions = range(len(ordered))
    ax.barh(positions, [o.surrender_value for o in ordered], color=SURRENDER_COLOR, alpha=0.8,
            label="Visszavásárlási érték")
    ax.scatter([o.total_contributions for o in ordered], positions, color="black", marker="|", s=400,
               zorder=5, label="Befizetések összesen")
    for pos, offer in zip(positions, ordered):
        ax.annotate(
            f"{offer.ratio_percent:.1f}%",
            xy=(offer.surrender_value, pos),
            xytext=(5, 0), textcoords="offset points",
            va="center", fontsize=10,
        )
    ax.set_yticks(list(positions))
    ax.set_yticklabels(labels)
    ax.set_xlabel("Visszavásárlási érték a futamidő végén")
    ax.set_title("Termékek összehasonlítása")
    ax.xaxis.set_major_formatter(ticker.FuncFormatter(lambda x, _: f"{x:,.0f}"))
    ax.grid(True, axis="x", alpha=0.3)
    ax.legend(loc="lower right")
    return _save(fig, output_path, "comparison", name)
