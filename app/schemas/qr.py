from datetime import datetime
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

SLOT_COUNT = 5


class EmptySlot(BaseModel):
    model_config = ConfigDict(frozen=True)

    empty: Literal[True] = True
    uid: None = None
    scanId: None = None


class FulfilledSlot(BaseModel):
    model_config = ConfigDict(frozen=True)

    empty: Literal[False] = False
    uid: str
    scanId: str


Slot = Union[EmptySlot, FulfilledSlot]


class ScanEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    scanId: str
    scannedAt: datetime
    successful: bool = True


class QrCode(BaseModel):
    # Documents may carry fields this service does not manage; keep them.
    model_config = ConfigDict(frozen=True, extra="allow")

    id: str
    generatedAt: datetime
    registeredAt: datetime | None = None
    registeredBy: str | None = None
    slots: list[Slot] = Field(min_length=SLOT_COUNT, max_length=SLOT_COUNT)
    scans: list[ScanEvent] = Field(default_factory=list)


# Request bodies stay untyped; the service maps bad values onto its error codes.
class QrBatchCreate(BaseModel):
    auth: Any = None
    quantity: Any = None


class QrBatchCreated(BaseModel):
    status: Literal["success"] = "success"
    quantity: int


class QrSlotRequest(BaseModel):
    uid: Any = None
