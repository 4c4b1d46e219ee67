import json

import httpx
import pytest

from wastesort.ai import WasteCategory, WasteClassifier
from wastesort.errors import ClassificationError, FailureReason


def _gemini_response(text=None, finish_reason="STOP", block_reason=None):
    body = {}
    if text is not None:
        body["candidates"] = [{
            "content": {"parts": [{"text": text}], "role": "model"},
            "finishReason": finish_reason
        }]
    elif finish_reason:
        body["candidates"] = [{"finishReason": finish_reason}]
    if block_reason:
        body["promptFeedback"] = {"blockReason": block_reason}
    return body


def _make_classifier(handler, max_retries=2):
    return WasteClassifier(
        api_key="test-key",
        base_url="https://gemini.test/v1beta/",
        model="gemini-2.5-flash",
        timeout=5,
        max_retries=max_retries,
        retry_delay=0,
        log_dir=None,
        transport=httpx.MockTransport(handler)
    )


async def test_classify_returns_category_and_sends_image():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json=_gemini_response("Kim Loại Tái Chế\n"))

    classifier = _make_classifier(handler)

    category = await classifier.classify(b"\x89PNG", "image/png")

    assert category == WasteCategory.METAL
    request = requests[0]
    assert request.url.path == "/v1beta/models/gemini-2.5-flash:generateContent"
    assert request.headers["x-goog-api-key"] == "test-key"
    payload = json.loads(request.content)
    inline = payload["contents"][0]["parts"][1]["inline_data"]
    assert inline == {"mime_type": "image/png", "data": "iVBORw=="}
    assert payload["generationConfig"]["temperature"] == 0.0


async def test_quoted_label_is_accepted():
    classifier = _make_classifier(lambda request: httpx.Response(200, json=_gemini_response('"Rác Khác"')))

    assert await classifier.classify(b"img") == WasteCategory.OTHER


@pytest.mark.parametrize("body, reason", [
    (_gemini_response(finish_reason="SAFETY"), FailureReason.SAFETY_REJECTED),
    (_gemini_response(block_reason="SAFETY", finish_reason=None), FailureReason.SAFETY_REJECTED),
    (_gemini_response(finish_reason="MAX_TOKENS"), FailureReason.INVALID_RESPONSE),
    ({}, FailureReason.INVALID_RESPONSE),
    (_gemini_response("Cardboard"), FailureReason.UNKNOWN_CATEGORY),
])
async def test_response_mapping(body, reason):
    classifier = _make_classifier(lambda request: httpx.Response(200, json=body))

    with pytest.raises(ClassificationError) as exc_info:
        await classifier.classify(b"img")

    assert exc_info.value.reason == reason


async def test_unknown_category_message_contains_text():
    classifier = _make_classifier(lambda request: httpx.Response(200, json=_gemini_response("Cardboard")))

    with pytest.raises(ClassificationError) as exc_info:
        await classifier.classify(b"img")

    assert "Cardboard" in exc_info.value.message


@pytest.mark.parametrize("status, message, reason", [
    (400, "API key not valid. Please pass a valid API key.", FailureReason.AUTH_ERROR),
    (403, "Permission denied", FailureReason.AUTH_ERROR),
    (400, "Invalid argument", FailureReason.INVALID_RESPONSE),
    (503, "Service unavailable", FailureReason.NETWORK_ERROR),
    (429, "Quota exceeded", FailureReason.NETWORK_ERROR),
])
async def test_http_error_mapping(status, message, reason):
    def handler(request):
        return httpx.Response(status, json={"error": {"code": status, "message": message}})

    classifier = _make_classifier(handler)

    with pytest.raises(ClassificationError) as exc_info:
        await classifier.classify(b"img")

    assert exc_info.value.reason == reason


async def test_network_error_is_retried():
    attempts = []

    def handler(request):
        attempts.append(request)
        if len(attempts) == 1:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, json=_gemini_response("Giấy Tái Chế"))

    classifier = _make_classifier(handler)

    assert await classifier.classify(b"img") == WasteCategory.PAPER
    assert len(attempts) == 2


async def test_network_error_after_retries():
    attempts = []

    def handler(request):
        attempts.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    classifier = _make_classifier(handler, max_retries=3)

    with pytest.raises(ClassificationError) as exc_info:
        await classifier.classify(b"img")

    assert exc_info.value.reason == FailureReason.NETWORK_ERROR
    assert len(attempts) == 3


async def test_auth_error_is_not_retried():
    attempts = []

    def handler(request):
        attempts.append(request)
        return httpx.Response(401, json={"error": {"message": "unauthenticated"}})

    classifier = _make_classifier(handler, max_retries=3)

    with pytest.raises(ClassificationError):
        await classifier.classify(b"img")

    assert len(attempts) == 1


async def test_non_json_response_is_invalid():
    classifier = _make_classifier(lambda request: httpx.Response(200, text="<html>oops</html>"))

    with pytest.raises(ClassificationError) as exc_info:
        await classifier.classify(b"img")

    assert exc_info.value.reason == FailureReason.INVALID_RESPONSE


async def test_empty_image_is_rejected_without_request():
    attempts = []

    def handler(request):
        attempts.append(request)
        return httpx.Response(200, json=_gemini_response("Rác Khác"))

    classifier = _make_classifier(handler)

    with pytest.raises(ClassificationError) as exc_info:
        await classifier.classify(b"")

    assert exc_info.value.reason == FailureReason.INVALID_RESPONSE
    assert attempts == []


async def test_connection_check():
    ok = _make_classifier(lambda request: httpx.Response(200, json=_gemini_response("Hi")))
    broken = _make_classifier(lambda request: httpx.Response(401, json={}))

    assert await ok.test_connection() is True
    assert await broken.test_connection() is False
