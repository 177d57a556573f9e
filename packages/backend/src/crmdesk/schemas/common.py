"""Shared schema building blocks.

Learn: Update bodies are partial. A field the client leaves out keeps
its stored value; a field sent as null clears it (when the column allows
null). pydantic records which fields were actually sent in
model_fields_set, which is exactly the "absent vs. null" distinction.
"""

from typing import Annotated, Any, ClassVar

from pydantic import BaseModel, Field, StringConstraints, model_validator

NonBlank = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

# Passwords are compared byte for byte, so surrounding whitespace is kept.
Password = Annotated[str, StringConstraints(min_length=1)]

# Row ids are int4 on Postgres; anything larger can never match a row.
MAX_ID = 2**31 - 1
RowId = Annotated[int, Field(gt=0, le=MAX_ID)]


class OkResponse(BaseModel):
    ok: bool = True


class CreatedResponse(BaseModel):
    ok: bool = True
    id: int


class PartialUpdate(BaseModel):
    """Base for PUT bodies: every field optional, absence means unchanged."""

    # Fields that may be omitted but never set to null.
    not_nullable: ClassVar[frozenset[str]] = frozenset()

    @model_validator(mode="after")
    def reject_null_required(self):
        nulled = sorted(
            name for name in self.model_fields_set
            if name in self.not_nullable and getattr(self, name) is None
        )
        if nulled:
            raise ValueError(f"cannot be null: {', '.join(nulled)}")
        return self

    def changes(self) -> dict[str, Any]:
        """Only the fields the client sent, with the values it sent."""
        return {name: getattr(self, name) for name in self.model_fields_set}
