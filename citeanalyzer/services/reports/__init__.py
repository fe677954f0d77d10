from citeanalyzer.services.reports.application import ResearcherReport, build_researcher_report

__all__ = ["ResearcherReport", "build_researcher_report"]
