"""
Base Schema Classes for Pydantic Models

RULE: All response schemas that read from ORM models MUST inherit from BaseResponseSchema.
"""

from pydantic import BaseModel, ConfigDict


class BaseResponseSchema(BaseModel):
    """
    Base class for response schemas built from ORM objects.

    UUIDs, dates and Decimals use pydantic's JSON serialization: UUIDs and
    Decimals become strings, so money keeps its exact value on the wire.

    Usage:
        class InvoiceResponse(BaseResponseSchema):
            id: UUID
            document_number: str
    """
    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
    )


class BaseCreateSchema(BaseModel):
    """
    Base class for create/input schemas.

    Surrounding whitespace is stripped from strings. Unknown fields are
    ignored, so clients may send read-only fields (such as computed
    amounts) back without error.
    """
    model_config = ConfigDict(
        extra='ignore',
        str_strip_whitespace=True,
    )


class BaseUpdateSchema(BaseCreateSchema):
    """
    Base class for partial updates.

    Only fields present in the payload are applied
    (``model_dump(exclude_unset=True)``).
    """
