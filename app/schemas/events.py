from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from app.enums.events import ChangeOp, ChangeTable
from app.utils.time import iso_now


class ChangeEvent(BaseModel):
    """A row mutation republished on the change feed.

    ``row`` is a full snapshot of the mutated row, never a delta, so any
    received event can be applied on its own.
    """

    model_config = ConfigDict(frozen=True)

    schema_version: int = Field(default=1)
    table: ChangeTable
    op: ChangeOp
    device_id: str
    row: dict[str, Any]
    published_at: str = Field(default_factory=iso_now)
