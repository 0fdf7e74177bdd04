"""
RESPONSE RESHAPER MODULE
========================

Turns raw OpenRouter JSON into the small envelopes the frontend expects.

  process_models(raw)            - mark free models, sort free-first then by name, keep 50.
  shape_chat_completion(data, m) - first choice's text + usage, echoing the model used.
  build_resume_messages(text)    - fixed system/user prompt around the first 12K chars.
  extract_json_object(content)   - decode the outermost {...} span of the model's reply.

Resume extraction deliberately takes everything from the FIRST "{" to the LAST
"}" in the reply. It is fragile when the reply contains unrelated braces
(e.g. code samples), but callers depend on exactly this span.
"""

import json
import re
import unicodedata
from typing import Any, Dict, List

from ats_proxy.models import ChatCompletionResponse, ModelListResponse, ModelSummary
from config import (
    MODEL_LIST_LIMIT,
    RESUME_PARSER_SYSTEM_PROMPT,
    RESUME_PARSER_USER_TEMPLATE,
    RESUME_PROMPT_CHAR_LIMIT,
)

FREE_MODEL_MARKER = ":free"

# Greedy: first "{" through last "}", newlines included.
_JSON_SPAN_RE = re.compile(r"\{.*\}", re.DOTALL)


class ResumeParseError(ValueError):
    """The model's reply held no decodable JSON object. content is the raw reply."""

    def __init__(self, message: str, content: str):
        super().__init__(message)
        self.message = message
        self.content = content


# ==============================================================================
# MODEL LIST
# ==============================================================================

def is_free_model(model: Dict[str, Any]) -> bool:
    """Free if the id carries ':free', or both prompt and completion pricing are the string "0"."""
    if FREE_MODEL_MARKER in str(model.get("id", "")):
        return True
    pricing = model.get("pricing")
    if not isinstance(pricing, dict):
        return False
    return pricing.get("prompt") == "0" and pricing.get("completion") == "0"


def display_name(model: Dict[str, Any]) -> str:
    return str(model.get("name") or model.get("id", ""))


def _sort_key(model: Dict[str, Any]):
    name = display_name(model)
    # Accent- and case-insensitive first, like a locale collation; on a tie
    # lowercase sorts before uppercase.
    folded = "".join(c for c in unicodedata.normalize("NFKD", name) if not unicodedata.combining(c))
    return (not is_free_model(model), folded.casefold(), name.swapcase())


def process_models(raw_models: List[Any], limit: int = MODEL_LIST_LIMIT) -> ModelListResponse:
    """
    Sort and trim OpenRouter's model list. total_count is the length of the full
    upstream list, not of the returned page.
    """
    models = [m for m in raw_models if isinstance(m, dict)]
    ordered = sorted(models, key=_sort_key)
    summaries = [
        ModelSummary(
            id=str(m.get("id", "")),
            name=display_name(m),
            is_free=is_free_model(m),
        )
        for m in ordered[:limit]
    ]
    return ModelListResponse(models=summaries, total_count=len(raw_models))


# ==============================================================================
# CHAT COMPLETION
# ==============================================================================

def first_choice_content(data: Dict[str, Any]) -> Any:
    """choices[0].message.content, or "" when any part of that path is missing."""
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return ""
    message = choices[0].get("message")
    if not isinstance(message, dict):
        return ""
    return message.get("content") or ""


def shape_chat_completion(data: Dict[str, Any], model: str) -> ChatCompletionResponse:
    return ChatCompletionResponse(
        content=first_choice_content(data),
        model=model,
        usage=data.get("usage"),
    )


# ==============================================================================
# RESUME PARSING
# ==============================================================================

def build_resume_messages(text: str) -> List[Dict[str, str]]:
    """System + user messages asking the model to return the resume as one JSON object."""
    user_message = RESUME_PARSER_USER_TEMPLATE.format(resume_text=text[:RESUME_PROMPT_CHAR_LIMIT])
    return [
        {"role": "system", "content": RESUME_PARSER_SYSTEM_PROMPT},
        {"role": "user", "content": user_message},
    ]


def reject_json_constant(name: str):
    # NaN / Infinity are not JSON.
    raise ValueError(f"Invalid JSON constant: {name}")


def extract_json_object(content: str) -> Dict[str, Any]:
    """
    Decode the outermost brace-delimited span of the model's reply.

    Raises ResumeParseError (carrying the raw reply) when there is no span or
    the span is not valid JSON. The decoded object is returned as-is; missing or
    extra keys are the caller's concern.
    """
    match = _JSON_SPAN_RE.search(content)
    if not match:
        raise ResumeParseError("AI response did not contain valid JSON", content)
    try:
        return json.loads(match.group(0), parse_constant=reject_json_constant)
    except ValueError:
        raise ResumeParseError("Failed to parse AI response as JSON", content)
