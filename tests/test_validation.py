import pytest

from ats_proxy.validation import validate_chat_request, validate_parse_resume_request


def chat_body(**overrides):
    body = {"messages": [{"role": "user", "content": "hi"}]}
    body.update(overrides)
    return body


@pytest.mark.parametrize("body", [
    chat_body(),
    chat_body(model="openai/gpt-4o-mini"),
    chat_body(temperature=0),
    chat_body(temperature=2),
    chat_body(temperature=1.25),
    chat_body(max_tokens=1),
    chat_body(max_tokens=4000),
    chat_body(max_tokens=500.0),
    chat_body(model=None),
    chat_body(messages=[
        {"role": "system", "content": "You are a resume coach."},
        {"role": "user", "content": "Improve this bullet."},
        {"role": "assistant", "content": "Sure."},
    ]),
    chat_body(messages=[{"role": "user", "content": "x" * 50_000}]),
])
def test_valid_chat_requests_have_no_violations(body):
    assert validate_chat_request(body) == []


def test_bad_role_and_empty_content_give_two_violations_for_index_zero():
    errors = validate_chat_request({"messages": [{"role": "bogus", "content": ""}]})
    assert errors == [
        "messages[0].role must be 'system', 'user', or 'assistant'",
        "messages[0].content must be a non-empty string",
    ]


def test_every_message_is_checked():
    errors = validate_chat_request({"messages": [
        {"role": "user", "content": "ok"},
        {"role": "robot", "content": "ok"},
        {"role": "user"},
    ]})
    assert errors == [
        "messages[1].role must be 'system', 'user', or 'assistant'",
        "messages[2].content must be a non-empty string",
    ]


def test_missing_messages():
    assert validate_chat_request({}) == ["messages must be an array"]


def test_messages_not_a_list():
    assert validate_chat_request({"messages": "hello"}) == ["messages must be an array"]


def test_empty_messages():
    assert validate_chat_request({"messages": []}) == ["messages array cannot be empty"]


def test_body_that_is_not_an_object():
    assert validate_chat_request(["not", "an", "object"]) == ["messages must be an array"]


def test_message_that_is_not_an_object():
    errors = validate_chat_request({"messages": ["hello"]})
    assert errors == [
        "messages[0].role must be 'system', 'user', or 'assistant'",
        "messages[0].content must be a non-empty string",
    ]


def test_content_over_limit():
    errors = validate_chat_request({"messages": [{"role": "user", "content": "x" * 50_001}]})
    assert errors == ["messages[0].content exceeds maximum length of 50000 characters"]


def test_oversized_non_string_content_reports_both_content_violations():
    errors = validate_chat_request({"messages": [{"role": "user", "content": ["x"] * 50_001}]})
    assert errors == [
        "messages[0].content must be a non-empty string",
        "messages[0].content exceeds maximum length of 50000 characters",
    ]


def test_non_string_content():
    errors = validate_chat_request({"messages": [{"role": "user", "content": 42}]})
    assert errors == ["messages[0].content must be a non-empty string"]


def test_model_must_be_string():
    assert validate_chat_request(chat_body(model=123)) == ["model must be a string"]


@pytest.mark.parametrize("temperature", [-0.1, 2.01, "0.5", None, True, [1]])
def test_bad_temperature(temperature):
    assert validate_chat_request(chat_body(temperature=temperature)) == [
        "temperature must be a number between 0 and 2"
    ]


@pytest.mark.parametrize("max_tokens", [0, 4001, 10.5, "100", None, False])
def test_bad_max_tokens(max_tokens):
    assert validate_chat_request(chat_body(max_tokens=max_tokens)) == [
        "max_tokens must be an integer between 1 and 4000"
    ]


def test_all_top_level_violations_are_collected():
    errors = validate_chat_request({
        "messages": [],
        "model": 5,
        "temperature": 3,
        "max_tokens": 0,
    })
    assert errors == [
        "messages array cannot be empty",
        "model must be a string",
        "temperature must be a number between 0 and 2",
        "max_tokens must be an integer between 1 and 4000",
    ]


# -----------------------------------------------------------------------------
# parse-resume
# -----------------------------------------------------------------------------

def test_resume_text_at_limit_is_valid():
    assert validate_parse_resume_request({"text": "a" * 100_000}) == []


def test_resume_text_over_limit():
    assert validate_parse_resume_request({"text": "a" * 100_001}) == [
        "Resume text exceeds maximum length"
    ]


@pytest.mark.parametrize("body", [{}, {"text": ""}, {"text": 12}, {"text": None}, "plain string"])
def test_resume_text_required(body):
    assert validate_parse_resume_request(body) == ["Resume text is required"]


def test_resume_model_must_be_string():
    assert validate_parse_resume_request({"text": "Jane Doe", "model": ["x"]}) == [
        "model must be a string"
    ]
