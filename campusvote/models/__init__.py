from typing import Any, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from campusvote.errors import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_model(model_cls: Type[ModelT], data: Any) -> ModelT:
    """Coerce a dict (or an existing model) into ``model_cls``.

    Pydantic errors are re-raised as the domain ``ValidationError`` so callers
    outside the HTTP layer (CLI, tests) see the same error taxonomy.
    """
    if isinstance(data, model_cls):
        return data
    try:
        return model_cls.model_validate(data)
    except PydanticValidationError as e:
        messages = [format_error(err) for err in e.errors()]
        raise ValidationError("Invalid input: " + "; ".join(messages), errors=messages)


def format_error(err: dict) -> str:
    location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
    message = err.get("msg", "invalid value")
    return f"{location}: {message}" if location else message
