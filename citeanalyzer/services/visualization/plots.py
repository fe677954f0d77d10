from __future__ import annotations

import logging
import math
from collections.abc import Sequence

import networkx as nx
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure
from networkx.algorithms.community import greedy_modularity_communities

from citeanalyzer.logging_utils import structured_log
from citeanalyzer.services.metrics.application import analyze_citation_trends
from citeanalyzer.services.metrics.types import YearlyTrend
from citeanalyzer.services.scholar.errors import InvalidArgumentError
from citeanalyzer.services.scholar.types import ResearcherProfile

PLOT_TYPES = ("summary", "timeline", "comparison")
PROFILE_PLOT_KINDS = ("citations", "publications", "h_index")
TREND_TYPES = ("publications", "citations", "both")
RADAR_METRICS = ("h_index", "i10_index", "total_citations", "publications")
TITLE_MAX_CHARS = 50

logger = logging.getLogger(__name__)

_LAYOUTS = {
    "spring": lambda graph: nx.spring_layout(graph, seed=42),
    "circular": nx.circular_layout,
    "shell": nx.shell_layout,
}


def _new_figure(figsize: tuple[float, float]) -> Figure:
    # Figures are rendered off-screen; callers save or close them.
    figure = Figure(figsize=figsize)
    FigureCanvasAgg(figure)
    return figure


def _short_title(title: str, limit: int = TITLE_MAX_CHARS) -> str:
    if len(title) <= limit:
        return title
    return f"{title[: limit - 3]}..."


def _require_choice(value: str, choices: Sequence[str], name: str) -> None:
    if value not in choices:
        raise InvalidArgumentError(f"{name} must be one of: {', '.join(choices)}")


def _require_publications(profile: ResearcherProfile) -> None:
    if not profile.publications:
        raise InvalidArgumentError("No publications found in scholar profile")


def _yearly(profile: ResearcherProfile) -> list[YearlyTrend]:
    return analyze_citation_trends([profile])


def plot_citation_impact(
    profile: ResearcherProfile,
    plot_type: str = "summary",
    compare_with: Sequence[ResearcherProfile] | None = None,
) -> Figure:
    """Draw one of the citation impact views of a profile.

    `summary` shows the ten most cited publications with the headline
    metrics, `timeline` shows publications and citations per year on twin
    axes, and `comparison` draws a radar of metrics normalized against the
    peers in `compare_with`.
    """
    _require_choice(plot_type, PLOT_TYPES, "plot_type")
    if plot_type == "summary":
        return _plot_summary(profile)
    if plot_type == "timeline":
        return _plot_timeline(profile)
    if not compare_with:
        raise InvalidArgumentError("comparison plot needs at least one profile in compare_with")
    return _plot_comparison([profile, *compare_with])


def _plot_summary(profile: ResearcherProfile) -> Figure:
    _require_publications(profile)
    top = sorted(profile.publications, key=lambda publication: publication.citedby, reverse=True)[:10]
    top.reverse()

    figure = _new_figure((10, 6))
    ax = figure.add_subplot()
    labels = [_short_title(publication.title) for publication in top]
    values = [publication.citedby for publication in top]
    bars = ax.barh(range(len(top)), values, color="steelblue", alpha=0.8)
    ax.set_yticks(range(len(top)), labels, fontsize=8)
    ax.bar_label(bars, padding=3, fontsize=8)
    ax.set_xlim(0, max(max(values), 1) * 1.1)
    ax.set_xlabel("Number of Citations")
    ax.set_ylabel("Publication Title")
    ax.set_title(
        f"Top 10 Publications by Citations - {profile.name}\n"
        f"Total Citations: {profile.citations_total:,} | h-index: {profile.h_index} | i10-index: {profile.i10_index}",
        fontsize=11,
    )
    figure.tight_layout()
    return figure


def _plot_timeline(profile: ResearcherProfile) -> Figure:
    _require_publications(profile)
    yearly = _yearly(profile)
    if not yearly:
        raise InvalidArgumentError("No dated publications found in scholar profile")

    years = [row.year for row in yearly]
    figure = _new_figure((10, 5))
    ax = figure.add_subplot()
    ax.plot(years, [row.publications for row in yearly], color="steelblue", marker="o", linewidth=1.5)
    ax.set_xlabel("Year")
    ax.set_ylabel("Number of Publications", color="steelblue")

    citations_ax = ax.twinx()
    citations_ax.plot(
        years,
        [row.total_citations for row in yearly],
        color="darkred",
        marker="o",
        linestyle="--",
        linewidth=1.5,
    )
    citations_ax.set_ylabel("Total Citations", color="darkred")
    ax.set_title(f"Publication and Citation Timeline - {profile.name}")
    figure.tight_layout()
    return figure


def _plot_comparison(profiles: Sequence[ResearcherProfile]) -> Figure:
    columns = {
        "h_index": [profile.h_index for profile in profiles],
        "i10_index": [profile.i10_index for profile in profiles],
        "total_citations": [profile.citations_total for profile in profiles],
        "publications": [len(profile.publications) for profile in profiles],
    }
    normalized = {}
    for metric, values in columns.items():
        peak = max(values)
        normalized[metric] = [value / peak if peak > 0 else value for value in values]

    angles = [2 * math.pi * index / len(RADAR_METRICS) for index in range(len(RADAR_METRICS))]
    figure = _new_figure((7, 7))
    ax = figure.add_subplot(projection="polar")
    for index, profile in enumerate(profiles):
        values = [normalized[metric][index] for metric in RADAR_METRICS]
        ax.plot([*angles, angles[0]], [*values, values[0]], marker="o", linewidth=1.2, label=profile.name)
    ax.set_xticks(angles, list(RADAR_METRICS))
    ax.set_ylim(0, 1)
    ax.set_title("Scholar Metrics Comparison\nNormalized metrics (0-1 scale)")
    ax.legend(loc="upper center", bbox_to_anchor=(0.5, -0.08), ncol=2)
    figure.tight_layout()
    return figure


def plot_profile(profile: ResearcherProfile, kind: str = "citations") -> Figure:
    _require_choice(kind, PROFILE_PLOT_KINDS, "kind")
    _require_publications(profile)
    figure = _new_figure((10, 6))
    ax = figure.add_subplot()

    if kind == "citations":
        top = sorted(profile.publications, key=lambda publication: publication.citedby, reverse=True)[:20]
        top.reverse()
        ax.barh(range(len(top)), [publication.citedby for publication in top], color="steelblue")
        ax.set_yticks(range(len(top)), [_short_title(publication.title) for publication in top], fontsize=7)
        ax.set_xlabel("Number of Citations")
        ax.set_title(f"Top 20 Publications by Citations - {profile.name}")
    else:
        yearly = _yearly(profile)
        if not yearly:
            raise InvalidArgumentError("No dated publications found in scholar profile")
        years = [row.year for row in yearly]
        if kind == "publications":
            ax.plot(years, [row.publications for row in yearly], color="blue", marker="o", linewidth=1.2)
            ax.set_ylabel("Number of Publications")
            ax.set_title(f"Publications per Year - {profile.name}")
        else:
            ax.plot(years, [row.h_index_estimate for row in yearly], color="darkgreen", marker="o", linewidth=1.5)
            ax.set_ylabel("h-index")
            ax.set_title(f"h-index Evolution - {profile.name}")
        ax.set_xlabel("Year")

    figure.tight_layout()
    return figure


def plot_collaboration_network(
    graph: nx.Graph,
    layout: str = "spring",
    highlight: str | None = None,
) -> Figure:
    """Draw a paper network with nodes sized by degree and coloured by community."""
    if graph.number_of_edges() == 0:
        raise InvalidArgumentError("Network has no edges to visualize")
    _require_choice(layout, tuple(_LAYOUTS), "layout")

    positions = _LAYOUTS[layout](graph)
    communities = greedy_modularity_communities(graph)
    membership = {node: index for index, community in enumerate(communities) for node in community}
    nodes = list(graph.nodes())
    degrees = dict(graph.degree())

    figure = _new_figure((10, 10))
    ax = figure.add_subplot()
    widths = [data.get("weight", 1.0) * 0.5 for _, _, data in graph.edges(data=True)]
    nx.draw_networkx_edges(graph, positions, ax=ax, edge_color="gray", alpha=0.6, width=widths)
    nx.draw_networkx_nodes(
        graph,
        positions,
        ax=ax,
        nodelist=nodes,
        node_size=[100 + 60 * degrees[node] for node in nodes],
        node_color=[membership.get(node, 0) for node in nodes],
        cmap="Set2",
        alpha=0.9,
    )
    nx.draw_networkx_labels(graph, positions, ax=ax, font_size=7)

    if highlight is not None:
        if highlight in graph:
            nx.draw_networkx_nodes(
                graph,
                positions,
                ax=ax,
                nodelist=[highlight],
                node_size=900,
                node_color="none",
                edgecolors="red",
                linewidths=2.0,
            )
        else:
            structured_log(logger, "warning", "visualization.highlight_missing", node=highlight)

    ax.set_title(f"Collaboration Network ({len(communities)} research clusters)")
    ax.set_axis_off()
    figure.tight_layout()
    return figure


def plot_publication_trends(profiles: Sequence[ResearcherProfile], trend_type: str = "both") -> Figure:
    if not profiles:
        raise InvalidArgumentError("No scholar profiles provided")
    _require_choice(trend_type, TREND_TYPES, "trend_type")
    trends = analyze_citation_trends(profiles)
    if not trends:
        raise InvalidArgumentError("No publication data available for plotting")

    panels = ["publications", "citations"] if trend_type == "both" else [trend_type]
    figure = _new_figure((10, 4 * len(panels)))
    axes = figure.subplots(len(panels), 1, squeeze=False)[:, 0]
    for ax, panel in zip(axes, panels):
        for profile in profiles:
            rows = [row for row in trends if row.scholar_id == profile.scholar_id]
            if not rows:
                continue
            values = [row.publications if panel == "publications" else row.total_citations for row in rows]
            ax.plot([row.year for row in rows], values, marker="o", linewidth=1.2, label=profile.name)
        ax.set_xlabel("Year")
        if panel == "publications":
            ax.set_ylabel("Number of Publications")
            ax.set_title("Publication Trends Over Time")
        else:
            ax.set_ylabel("Total Citations per Year")
            ax.set_title("Citation Trends Over Time")
        ax.legend(title="Scholar")
    figure.tight_layout()
    return figure
