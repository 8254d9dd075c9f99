"""
Pydantic schemas for working hours and ordering
"""

from pydantic import AfterValidator, BaseModel, Field, model_validator
from typing import Annotated, List, Sequence
from datetime import time
import uuid


class WorkingHoursEntry(BaseModel):
    day_of_week: int = Field(..., ge=0, le=6, description="0 = Sunday ... 6 = Saturday")
    start_time: time
    end_time: time
    is_active: bool = True

    @model_validator(mode="after")
    def check_interval(self) -> "WorkingHoursEntry":
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


def repeated_days(entries: Sequence[WorkingHoursEntry]) -> List[int]:
    seen = set()
    repeated = []
    for entry in entries:
        if entry.day_of_week in seen and entry.day_of_week not in repeated:
            repeated.append(entry.day_of_week)
        seen.add(entry.day_of_week)
    return repeated


def _check_distinct_days(entries: List[WorkingHoursEntry]) -> List[WorkingHoursEntry]:
    repeated = repeated_days(entries)
    if repeated:
        raise ValueError(f"day_of_week must be distinct, repeated: {repeated}")
    return entries


# One entry per day; a weekly schedule sent to the replace endpoints
WeeklySchedule = Annotated[List[WorkingHoursEntry], AfterValidator(_check_distinct_days)]


class ReorderRequest(BaseModel):
    """Ids in their new display order; position i gets sort_order i"""
    ids: List[uuid.UUID] = Field(..., min_length=1)
