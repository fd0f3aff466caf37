"""Rule-based content analysis."""

from onepager.analysis.engine import ContentAnalysisEngine, LiveAnalysis, build_snapshot

__all__ = ["ContentAnalysisEngine", "LiveAnalysis", "build_snapshot"]
