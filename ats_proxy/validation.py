"""
REQUEST VALIDATION MODULE
=========================

Checks the decoded JSON body of POST /api/chat and POST /api/parse-resume.
Each function returns a list of human-readable violations; an empty list means
the body is valid. Nothing here raises for bad input, and the chat checks never
stop at the first problem: every message is inspected so the caller sees all
violations at once.

A body that is not a JSON object is treated as an empty object, and a message
that is not an object is treated as an empty message.
"""

from typing import Any, List

from config import (
    ALLOWED_ROLES,
    MAX_MAX_TOKENS,
    MAX_MESSAGE_LENGTH,
    MAX_RESUME_LENGTH,
    MAX_TEMPERATURE,
    MIN_MAX_TOKENS,
    MIN_TEMPERATURE,
)


def _is_number(value: Any) -> bool:
    # bool is an int subclass in Python but is not a number on the wire.
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_integer(value: Any) -> bool:
    """True for ints and for integral floats such as 5.0."""
    if not _is_number(value):
        return False
    return isinstance(value, int) or value.is_integer()


def _as_object(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def validate_messages(messages: Any) -> List[str]:
    """Validate the `messages` array of a chat request."""
    if not isinstance(messages, list):
        return ["messages must be an array"]
    if not messages:
        return ["messages array cannot be empty"]

    errors = []
    for index, raw_message in enumerate(messages):
        message = _as_object(raw_message)
        role = message.get("role")
        content = message.get("content")

        if role not in ALLOWED_ROLES:
            errors.append(f"messages[{index}].role must be 'system', 'user', or 'assistant'")
        if not content or not isinstance(content, str):
            errors.append(f"messages[{index}].content must be a non-empty string")
        # Reported in addition to the check above (e.g. an oversized non-string list).
        if content and isinstance(content, (str, list)) and len(content) > MAX_MESSAGE_LENGTH:
            errors.append(
                f"messages[{index}].content exceeds maximum length of {MAX_MESSAGE_LENGTH} characters"
            )
    return errors


def validate_chat_request(body: Any) -> List[str]:
    """
    Validate a POST /api/chat body.

    messages is required; model, temperature and max_tokens are optional but
    must be well-formed when the key is present (an explicit null is rejected).
    """
    body = _as_object(body)
    errors = validate_messages(body.get("messages"))

    model = body.get("model")
    if model and not isinstance(model, str):
        errors.append("model must be a string")

    if "temperature" in body:
        temperature = body["temperature"]
        if not _is_number(temperature) or not MIN_TEMPERATURE <= temperature <= MAX_TEMPERATURE:
            errors.append(
                f"temperature must be a number between {MIN_TEMPERATURE} and {MAX_TEMPERATURE}"
            )

    if "max_tokens" in body:
        max_tokens = body["max_tokens"]
        if not _is_integer(max_tokens) or not MIN_MAX_TOKENS <= max_tokens <= MAX_MAX_TOKENS:
            errors.append(
                f"max_tokens must be an integer between {MIN_MAX_TOKENS} and {MAX_MAX_TOKENS}"
            )

    return errors


def validate_parse_resume_request(body: Any) -> List[str]:
    """Validate a POST /api/parse-resume body: non-empty `text` up to 100,000 characters."""
    body = _as_object(body)
    errors = []

    text = body.get("text")
    if not text or not isinstance(text, str):
        errors.append("Resume text is required")
    elif len(text) > MAX_RESUME_LENGTH:
        errors.append("Resume text exceeds maximum length")

    model = body.get("model")
    if model and not isinstance(model, str):
        errors.append("model must be a string")

    return errors
