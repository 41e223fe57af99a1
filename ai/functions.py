"""HTTP client for the hosted serverless functions.

CV parsing, LinkedIn analysis, e-mail delivery, the chat assistant and the
automation blueprint generator all run as named functions behind one base
URL. Each takes a JSON (or multipart) body and answers with JSON; a body
with ``"success": false`` is treated as a failure even on HTTP 200.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterator

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from matchwise.config import settings

logger = logging.getLogger(__name__)

PARSE_CV = "parse-cv"
ANALYZE_LINKEDIN = "analyze-linkedin"
SEND_WELCOME_EMAIL = "send-welcome-email"
SEND_REGISTRATION_NOTIFICATION = "send-registration-notification"
SEND_SKILL_ALERT = "send-skill-alert"
AUTOMATION_BLUEPRINT = "automation-blueprint"
MATCHWISE_CHAT = "matchwise-chat"


class FunctionInvocationError(Exception):
    """Raised when a hosted function fails or reports failure."""

    def __init__(self, function: str, message: str, status_code: int | None = None) -> None:
        super().__init__(f"{function}: {message}")
        self.function = function
        self.message = message
        self.status_code = status_code


@dataclass
class CVParseResult:
    """Response of the parse-cv function."""
    analysis: dict[str, Any]
    detected_information: dict[str, Any] = field(default_factory=dict)
    extraction_stats: dict[str, Any] = field(default_factory=dict)


class FunctionsClient:
    """Async client for the hosted functions.

    Transport errors (connection failures, timeouts) are retried with
    exponential backoff; HTTP error responses are not.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        api_key: str | None = None,
        timeout: float | None = None,
        retry_attempts: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        cfg = settings.functions
        self.base_url = (base_url or cfg.base_url).rstrip("/")
        self.retry_attempts = retry_attempts or cfg.retry_attempts
        api_key = api_key if api_key is not None else cfg.api_key

        headers = {"Accept": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
            headers["apikey"] = api_key

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout or cfg.timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> FunctionsClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def invoke(
        self,
        name: str,
        *,
        json: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        files: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """POST to a named function and return its decoded JSON body.

        Raises:
            FunctionInvocationError: On transport failure after retries, a
                non-2xx status, a non-JSON body or ``success: false``
        """
        logger.debug(f"Invoking function {name}")
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.retry_attempts),
                wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
                retry=retry_if_exception_type(httpx.TransportError),
                reraise=True,
            ):
                with attempt:
                    response = await self._client.post(f"/{name}", json=json, data=data, files=files)
        except httpx.TransportError as e:
            logger.error(f"Function {name} unreachable: {e}")
            raise FunctionInvocationError(name, f"request failed: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise FunctionInvocationError(
                name,
                f"invalid JSON response (HTTP {response.status_code})",
                response.status_code,
            ) from e

        if response.is_error:
            detail = body.get("error") if isinstance(body, dict) else None
            raise FunctionInvocationError(
                name,
                detail or f"HTTP {response.status_code}",
                response.status_code,
            )

        if not isinstance(body, dict):
            raise FunctionInvocationError(name, "unexpected response shape", response.status_code)

        if body.get("success") is False:
            raise FunctionInvocationError(
                name,
                body.get("error") or "function reported failure",
                response.status_code,
            )

        return body

    async def parse_cv(
        self,
        content: bytes,
        filename: str,
        *,
        content_type: str | None = None,
        linkedin_url: str = "",
        personal_description: str = "",
        personal_tagline: str = "",
    ) -> CVParseResult:
        body = await self.invoke(
            PARSE_CV,
            data={
                "linkedinUrl": linkedin_url,
                "personalDescription": personal_description,
                "personalTagline": personal_tagline,
            },
            files={"file": (filename, content, content_type or "application/octet-stream")},
        )
        analysis = body.get("analysis")
        if not isinstance(analysis, dict):
            raise FunctionInvocationError(PARSE_CV, "response contains no analysis")
        return CVParseResult(
            analysis=analysis,
            detected_information=body.get("detectedInformation") or {},
            extraction_stats=body.get("extractionStats") or {},
        )

    async def analyze_linkedin(self, linkedin_url: str) -> dict[str, Any]:
        body = await self.invoke(ANALYZE_LINKEDIN, json={"linkedinUrl": linkedin_url})
        return body.get("analysis") or {}

    async def send_welcome_email(
        self,
        consultant_email: str,
        consultant_name: str,
        *,
        is_my_consultant: bool = False,
    ) -> dict[str, Any]:
        return await self.invoke(
            SEND_WELCOME_EMAIL,
            json={
                "consultantEmail": consultant_email,
                "consultantName": consultant_name,
                "isMyConsultant": is_my_consultant,
            },
        )

    async def send_registration_notification(
        self,
        consultant_name: str,
        consultant_email: str,
        *,
        is_my_consultant: bool = False,
    ) -> dict[str, Any]:
        return await self.invoke(
            SEND_REGISTRATION_NOTIFICATION,
            json={
                "consultantName": consultant_name,
                "consultantEmail": consultant_email,
                "isMyConsultant": is_my_consultant,
            },
        )

    async def send_skill_alert(
        self,
        consultant: dict[str, Any],
        matching_skills: list[str],
        subscriber_email: str,
    ) -> dict[str, Any]:
        return await self.invoke(
            SEND_SKILL_ALERT,
            json={
                "consultant": consultant,
                "matchingSkills": matching_skills,
                "subscriberEmail": subscriber_email,
            },
        )

    async def chat(
        self,
        message: str,
        *,
        context: dict[str, Any] | None = None,
        role: str | None = None,
    ) -> str:
        body = await self.invoke(
            MATCHWISE_CHAT,
            json={"message": message, "context": context, "role": role},
        )
        return str(body.get("response") or "")

    async def automation_blueprint(self, automation_data: dict[str, Any]) -> dict[str, Any]:
        return await self.invoke(AUTOMATION_BLUEPRINT, json={"automationData": automation_data})


async def get_functions_client() -> AsyncIterator[FunctionsClient]:
    """FastAPI dependency yielding a client that is closed after the request."""
    async with FunctionsClient() as client:
        yield client
