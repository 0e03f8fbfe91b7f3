"""Request payload models and the helper that validates raw action input."""
from typing import Any, Dict, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from slapshot.core.errors import ValidationError

M = TypeVar("M", bound=BaseModel)


def error_message(exc: PydanticValidationError) -> str:
    """Flatten pydantic errors into the single reason the envelope carries."""
    error = exc.errors()[0]
    message = error["msg"].removeprefix("Value error, ")
    if error["type"] == "value_error":
        return message
    field = ".".join(str(part) for part in error["loc"])
    return f"{field}: {message}" if field else message


def parse_payload(model: Type[M], payload: Dict[str, Any]) -> M:
    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError(error_message(e))
