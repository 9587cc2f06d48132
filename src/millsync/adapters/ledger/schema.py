"""Pydantic models describing the order ledger API payloads."""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


def _code_to_text(value: object) -> object:
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return _blank_to_none(value)


class LedgerBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class OrderPayload(LedgerBaseModel):
    orderer: str
    work_start_time: str = Field(alias="workStartTime")
    result: str
    order_code: str | None = Field(default=None, alias="orderCode")
    work_end_time: str | None = Field(default=None, alias="workEndTime")
    total_work_time: int | None = Field(
        default=None,
        validation_alias=AliasChoices("totalWorkTime", "totalWorkTimeMinutes"),
    )
    error: str | None = None
    equipment_model: str | None = Field(default=None, alias="equipmentModel")

    _normalize_code = field_validator("order_code", mode="before")(_code_to_text)
    _normalize_blanks = field_validator(
        "work_end_time", "error", "equipment_model", mode="before"
    )(_blank_to_none)

    @field_validator("total_work_time", mode="before")
    @classmethod
    def _parse_minutes(cls, value: object) -> object:
        if isinstance(value, str):
            stripped = value.strip()
            return int(float(stripped)) if stripped else None
        if isinstance(value, float):
            return int(value)
        return value


class ListOrdersResponse(LedgerBaseModel):
    success: bool
    message: str | None = None
    data: list[object] | None = None


class MutationResponse(LedgerBaseModel):
    success: bool = True
    message: str | None = None
    data: dict[str, object] | None = None

    @field_validator("data", mode="before")
    @classmethod
    def _ignore_non_objects(cls, value: object) -> object:
        return value if isinstance(value, dict) else None

    @property
    def order_code(self) -> str | None:
        if self.data is None:
            return None
        code = _code_to_text(self.data.get("orderCode"))
        return code if isinstance(code, str) else None


class CreateOrderPayload(LedgerBaseModel):
    equipment_model: str = Field(serialization_alias="equipmentModel")
    orderer: str
    work_start_time: str = Field(serialization_alias="workStartTime")
    work_end_time: str | None = Field(serialization_alias="workEndTime")
    total_work_time: int | None = Field(serialization_alias="totalWorkTime")
    result: str
    error: str | None = None


class UpdateOrderPayload(LedgerBaseModel):
    orderer: str
    work_start_time: str = Field(serialization_alias="workStartTime")
    result: str
    work_end_time: str = Field(serialization_alias="workEndTime")
    total_work_time: int | None = Field(serialization_alias="totalWorkTime")
    error: str | None = None
