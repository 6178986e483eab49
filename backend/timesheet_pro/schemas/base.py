"""
Base schema shared by every mirrored record.
"""

import json
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """
    Record exchanged with the remote store.
    Field names are snake_case in Python and camelCase on the wire; unknown
    fields sent by the store are kept so that updates round-trip them.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    def to_wire(self) -> Dict[str, Any]:
        """Serialize for the remote store."""
        return self.model_dump(mode="json", by_alias=True)


def decode_json_list(value: Any) -> Any:
    """The store keeps list columns as JSON text; accept both encodings."""
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return []
        return json.loads(text)
    if value is None:
        return []
    return value
