"""
Interaction Log Codec

Turns the raw entries delivered by a poll into typed protocol records.
"""

import json
from typing import Iterable, List, Union

from pydantic import ValidationError

from ..core.exceptions import DecodeError
from ..core.logging import get_logger
from .models import PARSED_ENTRY_ADAPTER, ParsedLogEntry, RawLogEntry

logger = get_logger(__name__)


def classify(text: str) -> Union[ParsedLogEntry, RawLogEntry]:
    """
    Classify one raw entry as an interaction record or an unparsed entry.

    Args:
        text: Entry text as delivered by the server (a JSON document)

    Returns:
        The protocol record, or a RawLogEntry explaining why none was produced
    """
    try:
        document = json.loads(text)
    except (TypeError, ValueError) as e:
        return RawLogEntry(text=str(text), reason=f"not JSON: {e}")

    if not isinstance(document, dict):
        return RawLogEntry(text=text, reason="not an interaction object")

    try:
        return PARSED_ENTRY_ADAPTER.validate_python(document)
    except ValidationError as e:
        return RawLogEntry(text=text, reason=_describe(e))


def decode(raw_entries: Iterable[str], strict: bool = False) -> List[ParsedLogEntry]:
    """
    Decode a batch of raw entries, keeping only interaction records.

    Entries that do not parse (keep-alives, unknown protocols, records missing
    a field their protocol requires) are skipped unless ``strict`` is set.

    Args:
        raw_entries: Entries in server order
        strict: Raise DecodeError on the first unparseable entry instead of skipping

    Returns:
        Parsed records in server order

    Raises:
        DecodeError: If strict and an entry cannot be parsed
    """
    parsed: List[ParsedLogEntry] = []
    for position, text in enumerate(raw_entries):
        entry = classify(text)
        if isinstance(entry, RawLogEntry):
            if strict:
                raise DecodeError(
                    "Unparseable log entry",
                    {"position": position, "reason": entry.reason},
                )
            if entry.reason.startswith("missing"):
                # Known protocol without its required fields
                logger.warning(f"Skipping malformed log entry {position}: {entry.reason}")
            else:
                logger.debug(f"Skipping log entry {position}: {entry.reason}")
            continue
        parsed.append(entry)
    return parsed


def _describe(error: ValidationError) -> str:
    problems = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"])
        if item["type"] == "missing":
            problems.append(f"missing {location}")
        elif item["type"] in ("union_tag_invalid", "union_tag_not_found"):
            problems.append("unknown protocol")
        else:
            problems.append(f"{location}: {item['msg']}")
    return "; ".join(problems)
