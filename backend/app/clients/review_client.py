import logging
from typing import Optional

from pydantic import ValidationError

from ..config import settings
from ..schema import ProviderResult
from .llm_client import LLMClient, ProviderError


logger = logging.getLogger(__name__)

_primary_client = None
_secondary_client = None

def get_primary_client() -> LLMClient:
    global _primary_client
    if _primary_client is None:
        if not settings.openai_api_key:
            raise ProviderError("openai", "OPENAI_API_KEY is not configured")
        _primary_client = LLMClient(
            provider="openai",
            model=settings.model_openai,
            api_key=settings.openai_api_key,
        )
    return _primary_client

def get_secondary_client() -> Optional[LLMClient]:
    """Grok client, or None when no GROK_API_KEY is set."""
    global _secondary_client
    if not settings.grok_api_key:
        return None
    if _secondary_client is None:
        _secondary_client = LLMClient(
            provider="grok",
            model=settings.model_grok,
            api_key=settings.grok_api_key,
            base_url=settings.grok_base_url,
        )
    return _secondary_client

def _parse(provider: str, raw: dict) -> ProviderResult:
    try:
        return ProviderResult.model_validate(raw)
    except ValidationError as e:
        logger.error(f"{provider} output does not match the review schema: {e}")
        raise ProviderError(provider, "model output invalid") from e

def evaluate_primary(prompt: str) -> ProviderResult:
    """Required provider. Any failure raises ProviderError and aborts the review."""
    client = get_primary_client()
    result = _parse(client.provider, client.evaluate(prompt))
    logger.info(f"Primary provider returned {len(result.findings)} findings")
    return result

def evaluate_secondary(prompt: str) -> Optional[ProviderResult]:
    """Optional provider. Returns None when disabled or when the call fails."""
    try:
        client = get_secondary_client()
        if client is None:
            logger.debug("Secondary provider disabled")
            return None
        result = _parse(client.provider, client.evaluate(prompt))
    except Exception as e:
        logger.warning(f"Secondary provider ignored: {e}")
        return None
    logger.info(f"Secondary provider returned {len(result.findings)} findings")
    return result
