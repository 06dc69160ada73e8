"""JSON helpers for rendering values the standard encoder rejects."""

import json
from datetime import date, datetime
from enum import Enum
from typing import Any


class EnhancedJSONEncoder(json.JSONEncoder):
    def default(self, obj):
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        elif isinstance(obj, Enum):
            return obj.value
        # Handle Pydantic models and other objects with model_dump method
        elif hasattr(obj, "model_dump"):
            return obj.model_dump(mode="json")
        return super().default(obj)


def dumps(obj: Any, **kwargs) -> str:
    """JSON dumps with Enum, datetime and pydantic model support."""
    return json.dumps(obj, cls=EnhancedJSONEncoder, **kwargs)
