"""
Wire models for the upstream toll API.

The upstream serialises with .NET conventions and its clients match keys
case-insensitively, so keys are lower-cased before validation. Both the
upstream's own field names (Estacion, Sentido, Hora, Categoria,
ValorTabulado, Cantidad) and their English equivalents are accepted.
"""

from __future__ import annotations

import json
from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter, model_validator

MAX_AMOUNT = Decimal("1e16")


def lower_keys(data: Any) -> Any:
    if isinstance(data, dict):
        return {str(k).lower(): v for k, v in data.items()}
    return data


class _UpstreamModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def case_insensitive_keys(cls, data: Any) -> Any:
        return lower_keys(data)


class TokenResponse(_UpstreamModel):
    token: str
    expiration: datetime


class TollRecordPayload(_UpstreamModel):
    station: str = Field(validation_alias=AliasChoices("estacion", "station"))
    direction: str = Field(validation_alias=AliasChoices("sentido", "direction"))
    hour_offset: int = Field(ge=0, le=23, validation_alias=AliasChoices("hora", "houroffset", "hour_offset"))
    category: str = Field(validation_alias=AliasChoices("categoria", "category"))
    # fits Numeric(18, 2) once rounded to cents; NaN and Infinity are rejected
    amount: Decimal = Field(
        max_digits=18,
        gt=-MAX_AMOUNT,
        lt=MAX_AMOUNT,
        validation_alias=AliasChoices("valortabulado", "amount"),
    )


class VehicleCountPayload(_UpstreamModel):
    station: str = Field(validation_alias=AliasChoices("estacion", "station"))
    direction: str = Field(validation_alias=AliasChoices("sentido", "direction"))
    hour_offset: int = Field(ge=0, le=23, validation_alias=AliasChoices("hora", "houroffset", "hour_offset"))
    category: str = Field(validation_alias=AliasChoices("categoria", "category"))
    quantity: int = Field(ge=0, validation_alias=AliasChoices("cantidad", "quantity"))


TOLL_RECORDS = TypeAdapter(list[TollRecordPayload])
VEHICLE_COUNTS = TypeAdapter(list[VehicleCountPayload])


def parse_array(text: str, adapter: TypeAdapter) -> list:
    """
    Parse a JSON array body. Raises ValueError (JSONDecodeError, pydantic
    ValidationError, or nesting too deep to decode) when the body is not a
    valid array of items.
    """
    try:
        # Decimal keeps currency values exact
        data = json.loads(text, parse_float=Decimal)
    except RecursionError:
        raise ValueError("JSON nested too deeply") from None
    return adapter.validate_python(data)
