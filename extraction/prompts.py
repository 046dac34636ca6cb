"""
Prompt construction for batched enrichment requests.

Pure functions: the same subjects and task always give the same prompt.
"""

from typing import Sequence

OUTPUT_RULES = """CRITICAL OUTPUT RULE:
- You MUST return ONLY a valid JSON array, one object per subject listed above.
- Do NOT use Markdown formatting (no ```json fences).
- Do NOT add conversational text before or after the array."""


def format_subjects(subject_labels: Sequence[str]) -> str:
    """One line per subject, verbatim, in input order."""
    return "\n".join(f"- {label}" for label in subject_labels)


def build_prompt(subject_labels: Sequence[str], task) -> str:
    """
    Build the instruction text for one batch.

    Args:
        subject_labels: Identifying text of every subject in the batch
        task: EnrichmentTask providing role, instructions and schema

    Returns:
        Prompt string
    """
    return f"""{task.role}

SUBJECTS ({len(subject_labels)}):
{format_subjects(subject_labels)}

{task.instructions.strip()}

{OUTPUT_RULES}

JSON Schema:
{task.schema.strip()}
"""
