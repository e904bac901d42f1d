from datetime import date, datetime
from typing import Any
from pydantic import BaseModel, model_serializer

_DATETIME_FMT = "%Y-%m-%dT%H:%M:%S.%f"  # e.g. 2025-09-19T19:17:43.904000


def _to_naive_iso(v: Any):
    if isinstance(v, datetime):
        # goal timestamps are wall-clock; strip tzinfo, keep 6-digit microseconds
        return v.replace(tzinfo=None).strftime(_DATETIME_FMT)
    if isinstance(v, date):
        return v.isoformat()
    if isinstance(v, list):
        return [_to_naive_iso(x) for x in v]
    if isinstance(v, dict):
        return {k: _to_naive_iso(val) for k, val in v.items()}
    return v


class NaiveIsoDatetimeModel(BaseModel):
    """Serialize datetimes (nested too) as YYYY-MM-DDTHH:mm:ss.SSSSSS and dates as YYYY-MM-DD."""
    @model_serializer(mode="wrap")
    def _serialize(self, handler, info):
        if info.mode_is_json():
            # json mode hands back strings already; format from the python values
            return self.model_dump(mode="python")
        return _to_naive_iso(handler(self))
