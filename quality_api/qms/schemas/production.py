from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

LotStatus = Literal["Pendiente", "En Progreso", "Completado"]


class LotStatusUpdate(BaseModel):
    """New status of a production lot."""
    status: LotStatus = Field(...)


class QueueOrder(BaseModel):
    """Lot ids in the desired production order."""
    ids: List[str] = Field(..., description="First id gets productionOrder 1")


class LotNumbers(BaseModel):
    """Numeric fields of a lot body; every other key passes through untouched."""
    productionOrder: Optional[int] = Field(None, description="Queue position, 1 first")
    finalProductTheoreticalPowder: Optional[float] = Field(None)
    finalProductTheoreticalLiquid: Optional[float] = Field(None)
    finalProductReal: Optional[float] = Field(None)
    performance: Optional[float] = Field(None)

    class Config:
        extra = "ignore"

    @field_validator("*", mode="before")
    @classmethod
    def blank_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class ProductInfo(BaseModel):
    name: str = Field(...)
    type: Literal["powder", "liquid"] = Field(...)


class ItemPage(BaseModel):
    """All lots of one item, in queue order."""
    item: str = Field(...)
    product: ProductInfo = Field(...)
    lots: List[Dict[str, Any]] = Field(default_factory=list)


class NextInQueue(BaseModel):
    powder: Optional[Dict[str, Any]] = Field(None)
    liquid: Optional[Dict[str, Any]] = Field(None)


class ProductionDashboard(BaseModel):
    queue: List[Dict[str, Any]] = Field(default_factory=list)
    completedToday: int = Field(0)
    averagePerformance: str = Field("0.00", description="Mean performance, 2 decimals")
    nextInQueue: NextInQueue = Field(default_factory=NextInQueue)
