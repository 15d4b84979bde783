import json
import logging
import time
from typing import Dict, Any, Optional
from datetime import datetime, timezone
from pathlib import Path

from openai import OpenAI

from ..config import settings
from ..prompts import PROMPT_VERSION

logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """A model provider call failed or returned unusable output."""

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider}: {message}")
        self.provider = provider


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class LLMClient:
    def __init__(self, provider: str, model: str, api_key: str,
                 base_url: Optional[str] = None, timeout: Optional[float] = None):
        self.provider = provider
        self.model = model
        self.api_key = api_key
        self.call_log = []
        self.client = OpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout if timeout is not None else settings.llm_timeout,
            max_retries=0,
        )

    def call(self, prompt: str, temperature: float = 0.0) -> Dict[str, Any]:
        """Send the prompt as a single user message in JSON mode and log the interaction."""
        start = time.time()

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                temperature=temperature,
                response_format={"type": "json_object"},
                messages=[{"role": "user", "content": prompt}],
            )
        except Exception as e:
            logger.error(f"{self.provider} call failed: {str(e)}")
            raise ProviderError(self.provider, str(e)) from e

        usage = response.usage
        content = response.choices[0].message.content if response.choices else None
        result = {
            "response": content or "{}",
            "prompt_tokens": usage.prompt_tokens if usage else 0,
            "completion_tokens": usage.completion_tokens if usage else 0,
            "total_tokens": usage.total_tokens if usage else 0,
            "latency_ms": (time.time() - start) * 1000,
        }
        self._log_call(prompt, result)
        return result

    def evaluate(self, prompt: str) -> Dict[str, Any]:
        """Run the review prompt and return the parsed JSON object with its audit block stamped."""
        result = self.call(prompt)
        try:
            out = json.loads(result["response"])
        except json.JSONDecodeError as e:
            logger.error(f"{self.provider} returned invalid JSON: {e}")
            raise ProviderError(self.provider, f"invalid JSON response: {e}") from e
        if not isinstance(out, dict):
            raise ProviderError(self.provider, "response is not a JSON object")

        audit = out.get("audit")
        if not isinstance(audit, dict):
            audit = {}
        audit["prompt_version"] = PROMPT_VERSION
        if not isinstance(audit.get("model_versions"), dict):
            audit["model_versions"] = {}
        audit["model_versions"]["self"] = self.model
        audit["timestamp_utc"] = utc_timestamp()
        out["audit"] = audit
        return out

    def _log_call(self, prompt: str, result: Dict[str, Any]):
        """Log LLM calls for debugging and cost analysis."""
        log_entry = {
            "timestamp": utc_timestamp(),
            "provider": self.provider,
            "model": self.model,
            "prompt_length": len(prompt),
            "tokens": result["total_tokens"],
            "latency_ms": result["latency_ms"],
            "response_length": len(result["response"])
        }

        self.call_log.append(log_entry)

        if settings.log_llm_calls:
            log_dir = Path(settings.log_dir)
            try:
                log_dir.mkdir(parents=True, exist_ok=True)
                with open(log_dir / "llm_calls.jsonl", "a") as f:
                    f.write(json.dumps(log_entry) + "\n")
            except OSError as e:
                logger.warning(f"Could not write LLM call log to {log_dir}: {e}")

        logger.info(f"LLM Call: {log_entry}")
