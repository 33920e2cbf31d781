"""Shared pydantic base for immutable portal records."""

from __future__ import annotations

from pydantic import BaseModel


class RecordModel(BaseModel):
    """Frozen BaseModel with v2-style helpers available on v1 installations."""

    class Config:
        frozen = True

    if not hasattr(BaseModel, "model_dump"):
        def model_dump(self, *args, **kwargs):  # type: ignore[override]
            kwargs = dict(kwargs)
            kwargs.pop("mode", None)
            return self.dict(*args, **kwargs)

    if not hasattr(BaseModel, "model_copy"):
        def model_copy(self, *args, **kwargs):  # type: ignore[override]
            return self.copy(*args, **kwargs)

    if not hasattr(BaseModel, "model_validate"):
        @classmethod
        def model_validate(cls, obj, *args, **kwargs):  # type: ignore[override]
            return cls.parse_obj(obj, *args, **kwargs)


def field_names(model: type) -> tuple:
    """Declared field names of a pydantic model class, in declaration order."""

    fields = getattr(model, "model_fields", None)
    if fields is None:
        fields = model.__fields__
    return tuple(fields)
