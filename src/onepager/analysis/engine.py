"""Content analysis engine."""

from typing import Optional, Sequence

from onepager.analysis.checks import ALL_CHECKS, AnalysisCheck
from onepager.models.block import Document
from onepager.models.finding import DocumentSnapshot, Finding, SnapshotBlock
from onepager.models.richtext import flatten
from onepager.utils.logging import get_logger


logger = get_logger(__name__)


def build_snapshot(document: Document) -> DocumentSnapshot:
    """
    Flatten a document for analysis.

    Uses stored field values, so pending suggestions do not influence findings.
    """
    return DocumentSnapshot(
        title=document.title,
        blocks=tuple(
            SnapshotBlock(id=block.id, type=block.title, content=flatten(block.content))
            for block in document.content_blocks
        ),
    )


class ContentAnalysisEngine:
    """Runs every check in a fixed order and concatenates their findings."""

    def __init__(self, checks: Sequence[AnalysisCheck] = ALL_CHECKS):
        self.checks = tuple(checks)

    def analyze(self, document: DocumentSnapshot) -> list[Finding]:
        findings: list[Finding] = []
        for check in self.checks:
            findings.extend(check(document))
        return findings


class LiveAnalysis:
    """
    Keeps findings current for an editing session.

    Findings are recomputed from scratch whenever the flattened snapshot
    changes. An unchanged snapshot (a suggestion being attached, or a model
    event that touched no text) keeps the previous findings.
    """

    def __init__(self, engine: Optional[ContentAnalysisEngine] = None):
        self.engine = engine or ContentAnalysisEngine()
        self._snapshot: Optional[DocumentSnapshot] = None
        self._findings: list[Finding] = []

    @property
    def findings(self) -> list[Finding]:
        return list(self._findings)

    def update(self, document: Document) -> list[Finding]:
        snapshot = build_snapshot(document)
        if snapshot == self._snapshot:
            return self.findings

        self._snapshot = snapshot
        self._findings = self.engine.analyze(snapshot)
        logger.debug(
            "analysis_updated",
            finding_ids=[finding.id for finding in self._findings],
        )
        return self.findings
