"""
User Application DTOs
=====================

Pydantic request models for the users API.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from zordon_hub.config import Department, Role


class UserRegisterRequest(BaseModel):
    """Self-service registration. There is deliberately no role field."""
    name: str = Field(..., min_length=1, max_length=120)
    email: str = Field(..., min_length=3, max_length=254)
    department: Department = Field(default=Department.RED)
    skills: List[str] = Field(default_factory=list)


class RoleChangeRequest(BaseModel):
    role: Role


class WorkloadOverrideRequest(BaseModel):
    """Admin override of cached workload and presence."""
    workload_score: Optional[int] = Field(default=None, ge=0)
    is_online: Optional[bool] = None
