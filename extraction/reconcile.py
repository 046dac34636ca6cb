"""
Reconciliation of enrichment records with the caller's subjects.

Name matching is a heuristic: two names match when either contains the
other, ignoring case. Distinct subjects whose names contain one another
("Danone" and "Danone Group") can both pick up the same record. Identifier
matching is strict.
"""

from typing import Any, Dict, List, Optional, Sequence

from extraction.models import EnrichmentTask, MatchMode


def names_match(a: Optional[str], b: Optional[str]) -> bool:
    """Case-insensitive containment in either direction; blanks never match."""
    left = (a or "").strip().casefold()
    right = (b or "").strip().casefold()
    if not left or not right:
        return False
    return left in right or right in left


def normalize_identifier(value: Optional[str]) -> str:
    return (value or "").strip().upper()


def identifiers_match(a: Optional[str], b: Optional[str]) -> bool:
    """Exact equality after trimming and upper-casing; blanks never match."""
    left = normalize_identifier(a)
    return bool(left) and left == normalize_identifier(b)


def find_match(subject: Any, records: Sequence[Any], task: EnrichmentTask) -> Optional[Any]:
    """First record describing ``subject``, in the order the service returned them."""
    key = task.subject_key(subject)
    matcher = identifiers_match if task.match_mode == MatchMode.IDENTIFIER else names_match
    for record in records:
        if matcher(key, task.record_key(record)):
            return record
    return None


def apply_record(subject: Any, record: Any, task: EnrichmentTask) -> Any:
    """
    Return a copy of ``subject`` with ``record`` merged in.

    Enrichment fields are always written, missing ones reset to the task
    default; overlay fields are written only when the record has a value.
    """
    provided = record.model_dump(exclude_none=True)
    update: Dict[str, Any] = {}

    for field_name, default in task.enrichment_defaults.items():
        update[field_name] = provided.get(field_name, default)

    for field_name in task.overlay_fields:
        if provided.get(field_name) not in (None, ""):
            update[field_name] = provided[field_name]

    update.update(task.derived_fields(subject, update))

    data = subject.model_dump()
    data.update(update)
    return type(subject).model_validate(data)


def reconcile(subjects: Sequence[Any], records: Sequence[Any], task: EnrichmentTask) -> List[Any]:
    """
    Merge ``records`` onto ``subjects``.

    Same length and order as ``subjects``; unmatched subjects are returned
    as they are. At most one record is applied per subject.
    """
    merged = []
    for subject in subjects:
        record = find_match(subject, records, task)
        merged.append(apply_record(subject, record, task) if record is not None else subject)
    return merged
