"""Analysis checks.

Each check is a pure function from a ``DocumentSnapshot`` to a list of
findings. Checks never look at each other's output.
"""

import re
from typing import Callable

from onepager.models.finding import DocumentSnapshot, Finding


AnalysisCheck = Callable[[DocumentSnapshot], list[Finding]]

TITLE_MIN_LENGTH = 10
TITLE_MAX_LENGTH = 70
BRIEF_WORD_COUNT = 50
CTA_MIN_WORD_COUNT = 20

CTA_PATTERN = re.compile(r"learn more|contact us|sign up|buy now|get started", re.IGNORECASE)
RISK_PATTERN = re.compile(r"risk", re.IGNORECASE)


def check_title(document: DocumentSnapshot) -> list[Finding]:
    """Flag a missing, short or long title (at most one finding)."""
    title = document.title

    if not title.strip():
        return [Finding(
            id="no-title",
            severity="high",
            message="Add a title to your one-pager.",
        )]
    if len(title) < TITLE_MIN_LENGTH:
        return [Finding(
            id="title-too-short",
            severity="medium",
            message="Your title is very short. Consider making it more descriptive.",
        )]
    if len(title) > TITLE_MAX_LENGTH:
        return [Finding(
            id="title-too-long",
            severity="medium",
            message="Your title is quite long. Shorter titles are often more impactful.",
        )]
    return []


def count_words(document: DocumentSnapshot) -> int:
    """Count whitespace-separated tokens across all block bodies."""
    total_content = " ".join(block.content for block in document.blocks)
    return len(total_content.split())


def check_content(document: DocumentSnapshot) -> list[Finding]:
    """
    Flag empty or brief documents, and a missing call to action.

    The length finding and the call-to-action finding are independent.
    """
    findings: list[Finding] = []
    word_count = count_words(document)

    if word_count == 0:
        findings.append(Finding(
            id="no-content",
            severity="high",
            message="Your document is empty. Add some content blocks.",
        ))
    elif word_count < BRIEF_WORD_COUNT:
        findings.append(Finding(
            id="content-too-short",
            severity="low",
            message=(
                f"Your one-pager is very brief ({word_count} words). "
                f"Consider expanding on your ideas."
            ),
        ))

    has_cta = any(CTA_PATTERN.search(block.content) for block in document.blocks)

    if not has_cta and word_count > CTA_MIN_WORD_COUNT:
        findings.append(Finding(
            id="no-cta",
            severity="medium",
            message="Consider adding a call to action to guide your readers on what to do next.",
        ))

    return findings


def check_risks(document: DocumentSnapshot) -> list[Finding]:
    """Flag a missing risks section, or an empty first risks section."""
    risks_block = next(
        (block for block in document.blocks if RISK_PATTERN.search(block.type)),
        None,
    )

    if risks_block is None:
        return [Finding(
            id="no-risks-section",
            severity="medium",
            message=(
                'Consider adding a "Risks and Mitigations" section to address '
                'potential challenges and show foresight.'
            ),
        )]

    if not risks_block.content.strip():
        return [Finding(
            id="empty-risks-section",
            severity="low",
            message=(
                'The "Risks" section is empty. Outline potential risks and how '
                'you plan to mitigate them.'
            ),
            field_id=risks_block.id,
        )]

    return []


ALL_CHECKS: tuple[AnalysisCheck, ...] = (
    check_title,
    check_content,
    check_risks,
)
