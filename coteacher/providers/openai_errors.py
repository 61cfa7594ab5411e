"""Translation of ``openai`` SDK exceptions into CoTeacher errors.

Shared by the embedding, LLM and transcription adapters so that callers
never import ``openai`` to catch failures, and so exhausted credits are
recognised the same way everywhere.
"""

from __future__ import annotations

import openai

from coteacher.utils.errors import QuotaExceededError, UpstreamServiceError

_QUOTA_CODE = "insufficient_quota"


def is_quota_error(exc: BaseException) -> bool:
    """Return ``True`` if *exc* reports that the account is out of credits."""
    if getattr(exc, "code", None) == _QUOTA_CODE:
        return True
    body = getattr(exc, "body", None)
    if isinstance(body, dict):
        nested = body.get("error", body)
        if isinstance(nested, dict) and nested.get("code") == _QUOTA_CODE:
            return True
    return False


def translate_openai_error(
    exc: openai.APIError,
    label: str,
    provider_name: str,
) -> UpstreamServiceError:
    """Build the CoTeacher error to raise ``from`` an SDK exception."""
    if is_quota_error(exc):
        return QuotaExceededError(provider_name=provider_name)
    if isinstance(exc, openai.APITimeoutError):
        return UpstreamServiceError(
            message=f"{label} timed out",
            provider_name=provider_name,
        )
    return UpstreamServiceError(
        message=f"{label} API error: {exc}",
        provider_name=provider_name,
    )
