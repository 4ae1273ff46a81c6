"""Aggregation service response objects. Use with caution."""

# ruff: noqa: D101  # Missing docstring in public class

from pydantic import BaseModel, field_validator


class InstitutionKeyModel(BaseModel):
    """Single credential field definition of an institution."""

    name: str
    display_order: int
    status: str | None = None
    mask: bool | None = None
    description: str | None = None
    instructions: str | None = None


class InstitutionKeysModel(BaseModel):
    key: list[InstitutionKeyModel] = []

    @field_validator("key", mode="before")
    @classmethod
    def _single_key_as_list(cls, v: object) -> object:
        # A lone <key> element parses as a mapping rather than a list.
        if v is None:
            return []
        if isinstance(v, dict):
            return [v]
        return v


class InstitutionDetailModel(BaseModel):
    institution_id: str | None = None
    institution_name: str | None = None
    keys: InstitutionKeysModel | None = None


class InstitutionRespModel(BaseModel):
    """Aggregation service response to get institution."""

    institution_detail: InstitutionDetailModel
