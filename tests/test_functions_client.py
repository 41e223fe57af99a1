"""Tests for the hosted functions client."""
import json

import httpx
import pytest

from ai.functions import FunctionInvocationError, FunctionsClient


def make_client(handler, **kwargs) -> FunctionsClient:
    return FunctionsClient(
        "http://functions.test/functions/v1/",
        api_key="secret",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


async def test_invoke_posts_json_with_auth_headers():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("authorization")
        seen["apikey"] = request.headers.get("apikey")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"success": True, "response": "Hi there"})

    async with make_client(handler) as client:
        answer = await client.chat("Hello", role="consultant")

    assert answer == "Hi there"
    assert seen["url"] == "http://functions.test/functions/v1/matchwise-chat"
    assert seen["auth"] == "Bearer secret"
    assert seen["apikey"] == "secret"
    assert seen["body"] == {"message": "Hello", "context": None, "role": "consultant"}


async def test_success_false_is_an_error():
    def handler(request):
        return httpx.Response(200, json={"success": False, "error": "quota exceeded"})

    async with make_client(handler) as client:
        with pytest.raises(FunctionInvocationError, match="quota exceeded") as info:
            await client.send_welcome_email("anna@example.com", "Anna")

    assert info.value.function == "send-welcome-email"


async def test_http_error_status():
    def handler(request):
        return httpx.Response(500, json={"error": "boom"})

    async with make_client(handler) as client:
        with pytest.raises(FunctionInvocationError) as info:
            await client.analyze_linkedin("https://linkedin.com/in/anna")

    assert info.value.status_code == 500
    assert info.value.message == "boom"


async def test_non_json_body():
    def handler(request):
        return httpx.Response(200, text="<html>gateway</html>")

    async with make_client(handler) as client:
        with pytest.raises(FunctionInvocationError, match="invalid JSON"):
            await client.automation_blueprint({"steps": []})


async def test_transport_errors_are_retried():
    attempts = []

    def handler(request):
        attempts.append(request)
        if len(attempts) == 1:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, json={"analysis": {"culturalFit": 4}})

    async with make_client(handler, retry_attempts=2) as client:
        analysis = await client.analyze_linkedin("https://linkedin.com/in/anna")

    assert analysis == {"culturalFit": 4}
    assert len(attempts) == 2


async def test_transport_error_after_last_attempt():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with make_client(handler, retry_attempts=1) as client:
        with pytest.raises(FunctionInvocationError, match="request failed"):
            await client.send_registration_notification("Anna", "anna@example.com")


async def test_parse_cv_sends_multipart_and_requires_analysis():
    seen = {}

    def handler(request):
        seen["content_type"] = request.headers["content-type"]
        seen["body"] = request.content
        return httpx.Response(200, json={
            "success": True,
            "analysis": {"personalInfo": {"name": "Anna"}},
            "extractionStats": {"pages": 2},
        })

    async with make_client(handler) as client:
        result = await client.parse_cv(b"cv text", "anna.txt", content_type="text/plain",
                                       linkedin_url="https://linkedin.com/in/anna")

    assert seen["content_type"].startswith("multipart/form-data")
    assert b'name="linkedinUrl"' in seen["body"]
    assert b"cv text" in seen["body"]
    assert result.analysis == {"personalInfo": {"name": "Anna"}}
    assert result.extraction_stats == {"pages": 2}

    def empty_handler(request):
        return httpx.Response(200, json={"success": True})

    async with make_client(empty_handler) as client:
        with pytest.raises(FunctionInvocationError, match="no analysis"):
            await client.parse_cv(b"cv text", "anna.txt")


async def test_send_skill_alert_payload():
    bodies = []

    def handler(request):
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"success": True})

    async with make_client(handler) as client:
        await client.send_skill_alert({"name": "Anna"}, ["React"], "lead@example.com")

    assert bodies == [{
        "consultant": {"name": "Anna"},
        "matchingSkills": ["React"],
        "subscriberEmail": "lead@example.com",
    }]
