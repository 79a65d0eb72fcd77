"""
Interaction Record Normalizer

Flattens typed protocol records into plain string mappings for generic
consumers (scripts, JSON output, report writers).
"""

from typing import Dict, Iterable, List

from .models import ParsedLogEntry

NormalizedRecord = Dict[str, str]


def to_record(entry: ParsedLogEntry) -> NormalizedRecord:
    """
    Convert one protocol record into a field name to string value mapping.

    Args:
        entry: Parsed interaction record

    Returns:
        Mapping containing exactly the record's protocol fields
    """
    return {name: str(value) for name, value in entry.fields().items()}


def normalize(entries: Iterable[ParsedLogEntry]) -> List[NormalizedRecord]:
    """
    Convert each record independently, preserving order.

    Args:
        entries: Parsed interaction records from one poll

    Returns:
        One normalized record per entry
    """
    return [to_record(entry) for entry in entries]


def flatten(entries: Iterable[ParsedLogEntry]) -> NormalizedRecord:
    """
    Merge all records into a single mapping.

    Later entries overwrite same-named fields of earlier ones, so only the
    last value of each field survives a poll that returned several entries.

    Args:
        entries: Parsed interaction records from one poll

    Returns:
        The merged mapping (empty when there were no entries)
    """
    merged: NormalizedRecord = {}
    for entry in entries:
        merged.update(to_record(entry))
    return merged
