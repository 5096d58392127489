from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class DashboardLink(BaseModel):
    """Where a user lands after signing in."""
    path: str = Field(..., description="Dashboard route for the caller's role")
    role: str = Field(...)


class QualityDashboard(BaseModel):
    recentActivity: List[Dict[str, Any]] = Field(default_factory=list, description="Latest 5 records by date")
    qualityFailures: int = Field(0)
    pendingVerifications: int = Field(0, description="Hygiene logs waiting for verification")
    retainedLots: int = Field(0, description="Finished product records retained")


class ActivityEntry(BaseModel):
    id: str = Field(...)
    module: str = Field(...)
    description: str = Field(...)
    timestamp: Optional[str] = Field(None)
    link: str = Field(..., description="In-app route the activity refers to")


class ModuleTotal(BaseModel):
    name: str = Field(...)
    total: int = Field(0)


class AdministratorDashboard(BaseModel):
    userCount: int = Field(0)
    lotCount: int = Field(0)
    totalQualityDocs: int = Field(0)
    qualityFailures: int = Field(0)
    activityByModule: List[ModuleTotal] = Field(default_factory=list)
    recentActivity: List[ActivityEntry] = Field(default_factory=list)
