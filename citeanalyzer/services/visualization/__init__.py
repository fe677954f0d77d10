from citeanalyzer.services.visualization.plots import (
    plot_citation_impact,
    plot_collaboration_network,
    plot_profile,
    plot_publication_trends,
)

__all__ = [
    "plot_citation_impact",
    "plot_collaboration_network",
    "plot_profile",
    "plot_publication_trends",
]
