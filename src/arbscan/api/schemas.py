"""Pydantic schemas for API request/response consistency and OpenAPI docs."""

from __future__ import annotations

from pydantic import BaseModel, Field, computed_field

from arbscan.models import Market


# --- Health ---
class HealthResponse(BaseModel):
    status: str = "ok"
    timestamp: int


# --- Error (consistent shape for 5xx) ---
class ErrorResponse(BaseModel):
    error: str = Field(..., description="Human-readable message")


class ScanErrorResponse(BaseModel):
    success: bool = False
    error: str


# --- Scan ---
class SourceSection(BaseModel):
    """One source's contribution to a scan. `count` is derived, never set."""

    markets: list[Market] = Field(default_factory=list)
    error: str | None = Field(None, description="Why this source is empty, when it failed")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def count(self) -> int:
        return len(self.markets)

    @classmethod
    def from_markets(cls, markets: list[Market], error: str | None = None) -> SourceSection:
        return cls(markets=markets, error=error)


class ScanResponse(BaseModel):
    success: bool = True
    timestamp: int = Field(..., description="Snapshot time, ms epoch")
    opinion: SourceSection
    probable: SourceSection
