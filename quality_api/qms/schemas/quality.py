from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel, Field

ModuleStatus = Literal["locked", "unlocked", "completed_and_locked"]


class StatusUpdate(BaseModel):
    """New outcome for a quality record; written to both status and result."""
    status: str = Field(..., min_length=1, description="e.g. Conforme, No Conforme, Aprobado")


class QualityFormRead(BaseModel):
    """A quality form type from the catalog."""
    form_type: str = Field(...)
    collection: str = Field(...)
    title: str = Field(...)
    path: str = Field(...)
    flow: str = Field(...)
    section: str = Field(...)


class FlowModuleStatus(BaseModel):
    """A flow module and its lock state."""
    id: str = Field(...)
    href: str = Field(...)
    title: str = Field(...)
    description: str = Field(...)
    collection_names: List[str] = Field(...)
    type: Literal["powder", "liquid"] = Field(...)
    isApproved: bool = Field(..., description="Has active records and all are approved")
    status: ModuleStatus = Field(...)


class FlowStatusRead(BaseModel):
    """Lock state of a whole control flow."""
    flow: Literal["powder", "liquid"] = Field(...)
    modules: List[FlowModuleStatus] = Field(default_factory=list)
    cycleComplete: bool = Field(False, description="Every module approved with active records")


class OverrideResult(BaseModel):
    moduleId: str = Field(...)
    overridden: bool = Field(..., description="True when the module is now manually unlocked")


class ArchiveResult(BaseModel):
    cycleId: str = Field(..., description="Cycle id stamped on the archived records")
    archived: int = Field(..., description="Number of records archived")


class PccTabRead(BaseModel):
    href: str = Field(...)
    label: str = Field(...)
    collection_name: str = Field(...)
    status: Literal["locked", "unlocked", "completed"] = Field(...)


class PrintSection(BaseModel):
    """Active records of one print module."""
    id: str = Field(...)
    title: str = Field(...)
    records: List[dict] = Field(default_factory=list)


class ReportableModuleRead(BaseModel):
    value: str = Field(...)
    label: str = Field(...)

