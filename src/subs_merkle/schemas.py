"""Proof payload schemas exchanged with clients and the chain collaborator."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

UINT64_MAX = 2**64 - 1


class SubscriptionProof(BaseModel):
    model_config = ConfigDict(extra="forbid")

    address: str
    expiration: int = Field(..., ge=0, le=UINT64_MAX)
    root: str
    proof: List[str]
    leaf: Optional[str] = None
