"""
EventSync Codec

Wire and storage representation of events and batches.

The same JSON document is POSTed to the collector and written to the
pending store:

    {"events": [{"type": "click", "data": "btn1"}, ...]}
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List


class EventSyncError(Exception):
    """Base class for EventSync errors"""


class BatchDecodeError(EventSyncError, ValueError):
    """Raised when a stored or received batch cannot be decoded"""


@dataclass(frozen=True)
class EventRecord:
    """A single tracked event. Identity is assigned by the buffer, not here."""

    type: str
    data: str

    def to_dict(self) -> Dict[str, str]:
        return {'type': self.type, 'data': self.data}

    @classmethod
    def from_dict(cls, obj: Any) -> "EventRecord":
        if not isinstance(obj, dict):
            raise BatchDecodeError(f"Event must be an object, got {type(obj).__name__}")

        event_type = obj.get('type')
        data = obj.get('data')
        if not isinstance(event_type, str) or not isinstance(data, str):
            raise BatchDecodeError(f"Event needs string 'type' and 'data' fields: {obj!r}")

        return cls(type=event_type, data=data)


def encode_batch(records: Iterable[EventRecord]) -> str:
    """
    Encode records as a batch document.

    Args:
        records: Events to include, in any order

    Returns:
        JSON text
    """
    return json.dumps({'events': [record.to_dict() for record in records]})


def decode_batch(text: str) -> List[EventRecord]:
    """
    Decode a batch document produced by encode_batch().

    Raises:
        BatchDecodeError: If the text is not a well-formed batch
    """
    try:
        payload = json.loads(text)
    except (TypeError, ValueError) as e:
        raise BatchDecodeError(f"Invalid batch JSON: {e}") from e

    if not isinstance(payload, dict):
        raise BatchDecodeError("Batch must be a JSON object")

    events = payload.get('events')
    if not isinstance(events, list):
        raise BatchDecodeError("Batch is missing the 'events' array")

    return [EventRecord.from_dict(item) for item in events]
