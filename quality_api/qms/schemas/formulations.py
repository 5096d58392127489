from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, Field


class FormulationRead(BaseModel):
    """Formulation summary (without the stored file)."""
    id: str = Field(...)
    item: str = Field(..., description="Item code from cell B1")
    name: str = Field(..., description="Product name")
    ingredients: int = Field(0, description="Sheet rows minus one")
    lastUpdated: Optional[str] = Field(None)
    fileName: Optional[str] = Field(None)
    fileType: Optional[str] = Field(None)
    isInitial: bool = Field(False)
    cycleId: Optional[str] = Field(None)


class FormulationTable(BaseModel):
    header: List[Any] = Field(default_factory=list, description="Row 4 of the sheet")
    rows: List[List[Any]] = Field(default_factory=list, description="Rows 5 onward")


class FormulationDetail(FormulationRead):
    table: FormulationTable = Field(default_factory=FormulationTable)
