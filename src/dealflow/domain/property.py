# src/dealflow/domain/property.py
from __future__ import annotations

import math
import numbers
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

from dealflow.adapters.logging_utils import get_logger

logger = get_logger(__name__)


class InvalidPropertyParameters(ValueError):
    """Raised when property parameters describe a deal the engine cannot analyse."""

    def __init__(self, errors: dict[str, str]) -> None:
        self.errors = errors
        detail = "; ".join(f"{k}: {v}" for k, v in errors.items())
        super().__init__(f"Invalid property parameters: {detail}")


def _parse_number(value: Any) -> float | None:
    """
    Lenient numeric parse for untrusted JSON:
      - 250000, 6.5
      - "250000", " 6.5 "
      - "6.5%", "$300,000"
    Returns None for missing / blank / garbage / non-finite input.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, numbers.Real):
        f = float(value)
    elif isinstance(value, str):
        s = value.strip().replace(",", "").replace("$", "")
        if s.endswith("%"):
            s = s[:-1].strip()
        if not s:
            return None
        try:
            f = float(s)
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(f):
        return None
    return f


# dollars; keeps every derived figure finite
MAX_AMOUNT = 1e12


class PropertyParameters(BaseModel):
    """
    Inputs for one investment analysis.

    Percent fields are whole percents (20 means 20%), matching the public JSON API.
    Every field has a declared fallback; range checks reject inputs that would make
    the metrics non-finite (zero price, zero term, a 100000-year loan, 1e308 rent)
    or meaningless (negative money).
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
        validate_default=True,
    )

    purchase_price: float = Field(default=0.0, gt=0, le=MAX_AMOUNT, description="Purchase price in dollars")
    down_payment_percent: float = Field(default=20.0, ge=0, le=100, description="20 means 20% down")
    interest_rate: float = Field(default=7.0, ge=0, le=100, description="Annual rate in percent")
    loan_term: int = Field(default=30, ge=1, le=100, description="Amortization period in years")

    monthly_rent: float = Field(default=0.0, ge=0, le=MAX_AMOUNT)
    property_tax: float = Field(default=0.0, ge=0, le=MAX_AMOUNT, description="Annual")
    insurance: float = Field(default=0.0, ge=0, le=MAX_AMOUNT, description="Annual")
    hoa_fees: float = Field(default=0.0, ge=0, le=MAX_AMOUNT, description="Monthly")

    maintenance_percent: float = Field(default=1.0, ge=0, le=100, description="Percent of rent")
    vacancy_percent: float = Field(default=5.0, ge=0, le=100, description="Percent of rent")
    property_management_percent: float = Field(default=10.0, ge=0, le=100, description="Percent of rent")

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_or_default(cls, v: Any, info: ValidationInfo) -> Any:
        name = info.field_name
        default = cls.model_fields[name].default
        parsed = _parse_number(v)

        if parsed is None:
            if v is not None and not (isinstance(v, str) and not v.strip()):
                logger.warning(
                    "param_coerced_to_default",
                    extra={"context": {"field": to_camel(name), "value": repr(v)[:80], "default": default}},
                )
            return default

        if name == "loan_term":
            # whole years only; "30.0" and 30.9 both mean 30
            return int(parsed)
        return parsed

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class PropertyLocation(BaseModel):
    """Free-text location carried alongside the numbers (prompts + saved deals)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True, extra="ignore")

    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None

    @field_validator("*", mode="before")
    @classmethod
    def _stringify(cls, v: Any) -> Any:
        if v is None:
            return None
        s = str(v).strip()
        return s or None

    def label(self) -> str:
        parts = [p for p in (self.address, self.city, self.state) if p]
        out = ", ".join(parts)
        if self.zip_code:
            out = f"{out} {self.zip_code}".strip()
        return out or "Unknown location"


_ALIASES = {name: to_camel(name) for name in PropertyParameters.model_fields}


def parse_property_parameters(raw: Mapping[str, Any]) -> PropertyParameters:
    """
    Build validated parameters from an untrusted mapping (camelCase or snake_case keys).

    Raises InvalidPropertyParameters with a {field: message} map on range failures.
    """
    try:
        return PropertyParameters.model_validate(dict(raw))
    except ValidationError as exc:
        errors: dict[str, str] = {}
        for err in exc.errors():
            loc = str(err["loc"][0]) if err.get("loc") else "__root__"
            field = _ALIASES.get(loc, loc)
            errors.setdefault(field, err["msg"])
        raise InvalidPropertyParameters(errors) from exc


def parse_property_location(raw: Mapping[str, Any]) -> PropertyLocation:
    return PropertyLocation.model_validate(dict(raw))
