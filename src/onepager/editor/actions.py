"""Catalog of AI actions offered per block."""

DEFAULT_ACTIONS = ["Improve Writing", "Make More Concise"]

PROBLEM_ACTIONS = ["Clarify Problem", "Expand on Impact", "Suggest Metrics"]

SOLUTION_ACTIONS = ["Strengthen Solution", "Outline Implementation Steps", "Estimate Effort"]

SUMMARIZE_ACTION = "Summarize into Key Points"


def actions_for_label(label: str) -> list[str]:
    """
    List the refine actions offered for a block, based on its title.

    Args:
        label: Block title

    Returns:
        Section-specific actions first, then the default actions

    Example:
        >>> actions_for_label("Problem Statement")
        ['Clarify Problem', 'Expand on Impact', 'Suggest Metrics', 'Improve Writing', 'Make More Concise']
    """
    lower_label = label.lower()

    specific_actions: list[str] = []
    if "problem" in lower_label:
        specific_actions = PROBLEM_ACTIONS
    elif "solution" in lower_label:
        specific_actions = SOLUTION_ACTIONS

    return [*specific_actions, *DEFAULT_ACTIONS]


def is_summarize_action(action: str) -> bool:
    """Summarize-type actions return bullet items instead of replacement text."""
    return "summarize" in action.lower()
