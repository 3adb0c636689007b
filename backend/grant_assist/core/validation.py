"""
Request Validation

Parses raw request bodies into the assistant request union and flattens
Pydantic errors into per-field violations.
"""
import json
from typing import Any, Dict, List
from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from grant_assist.core.errors import MalformedRequest, ValidationError
from grant_assist.models.assist import AssistRequest

_assist_request_adapter = TypeAdapter(AssistRequest)

_REQUEST_TAGS = ("polish", "suggest")
_TAG_ERRORS = ("union_tag_not_found", "union_tag_invalid")


def parse_json_body(raw: bytes) -> Any:
    """Decode a request body, raising MalformedRequest if it is not JSON."""
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise MalformedRequest()


def validate_assist_request(data: Any) -> AssistRequest:
    """Validate decoded JSON against the polish/suggest request shapes."""
    try:
        return _assist_request_adapter.validate_python(data)
    except PydanticValidationError as e:
        raise ValidationError(format_violations(e.errors()))


def parse_assist_request(raw: bytes) -> AssistRequest:
    return validate_assist_request(parse_json_body(raw))


def format_violations(errors: List[Dict[str, Any]]) -> List[Dict[str, str]]:
    """
    Convert Pydantic error dicts into {"field", "message"} entries.

    The discriminator tag Pydantic prefixes to locations is dropped, so a
    too-long question in a polish request reports "question_text".
    """
    violations = []
    for error in errors:
        loc = list(error.get("loc", ()))
        if loc and loc[0] in _REQUEST_TAGS:
            loc = loc[1:]

        if error.get("type") in _TAG_ERRORS:
            field = "type"
        elif loc:
            field = ".".join(str(part) for part in loc)
        else:
            field = "body"

        violations.append({"field": field, "message": error.get("msg", "Invalid value")})
    return violations
