"""
Pydantic models for the risk assessment report rendered to PDF.

The marketing page posts these in camelCase (``riskScore``, ``riskLevel``...)
and calls the band name ``level``; the models accept both the aliases and the
Python field names.
"""

from typing import Optional
from pydantic import BaseModel, Field, field_validator

_HEX_DIGITS = set("0123456789abcdefABCDEF")


class RiskLevel(BaseModel):
    """Named risk band and the colour it is drawn in."""

    model_config = {"populate_by_name": True}

    label: str = Field(alias="level")
    color: str  # e.g. "#ffc107"

    @field_validator("color")
    @classmethod
    def _validate_hex_color(cls, value: str) -> str:
        digits = value[1:] if value.startswith("#") else ""
        if len(digits) not in (3, 6) or not set(digits) <= _HEX_DIGITS:
            raise ValueError(f"color must be a hex string like #ffc107, got {value!r}")
        return value


class RiskReport(BaseModel):
    """Risk assessment summary; lives for a single request."""

    model_config = {"populate_by_name": True}

    risk_score: int = Field(alias="riskScore", ge=0, le=100)
    risk_level: RiskLevel = Field(alias="riskLevel")
    business_type: Optional[str] = Field(default=None, alias="businessType")
    risk_factors: list[str] = Field(default_factory=list, alias="riskFactors")
    recommendations: list[str] = Field(default_factory=list)
