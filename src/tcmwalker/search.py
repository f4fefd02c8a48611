"""Free-text search over record collections."""

from collections.abc import Sequence
from typing import TypeVar

from tcmwalker.models import Searchable

RecordT = TypeVar("RecordT", bound=Searchable)


def matches(record: Searchable, keyword: str) -> bool:
    """Check whether any textual field of the record contains the keyword."""
    return any(text is not None and keyword in text for _, text in record.field_pairs())


def search_records(records: Sequence[RecordT], keyword: str) -> list[RecordT]:
    """
    Filter records by case-sensitive substring match.

    Returns a new list in the original order; the input is not modified. An
    empty keyword keeps every record that has at least one textual field.
    """
    return [record for record in records if matches(record, keyword)]
