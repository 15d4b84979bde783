# app/tests/conftest.py
import os
import tempfile

import pytest

_tmp = tempfile.mkdtemp(prefix="ethicaltruth-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_tmp, 'reviews.db')}"
os.environ["LOG_LLM_CALLS"] = "false"
os.environ["OPENAI_API_KEY"] = "test-openai-key"
os.environ.pop("GROK_API_KEY", None)

from backend.app.schema import ProviderResult  # noqa: E402

@pytest.fixture
def provider_output():
    """Raw provider JSON as the review prompt asks for it."""
    return {
        "case_id": "ET-1A2B",
        "claim_extract": ["The vaccine was approved in 2021"],
        "findings": [
            {
                "claim": "The vaccine was approved in 2021",
                "status": "Supported",
                "evidence": [
                    {"quote": "Approved on 23 August 2021", "url": "https://www.fda.gov/news/approval", "tier": "regulator"},
                    {"quote": "Full approval granted", "url": "https://www.nejm.org/doi/1", "tier": "peerreview"},
                ],
                "notes": "",
            },
            {
                "claim": "It causes widespread harm",
                "status": "Rejected",
                "evidence": [],
                "notes": "No sources",
            },
        ],
        "scores": {"truth": 80, "safety": 70, "bias": 20, "transparency": 60, "proportionality": 50},
        "verdict": "Supported",
        "confidence": 80,
        "top_sources": ["https://www.fda.gov/news/approval"],
        "known_unknowns": ["Long-term data"],
        "audit": {"prompt_version": "ET-v1.0", "model_versions": {"self": "gpt-4o-mini"}, "timestamp_utc": "2026-10-16T12:00:00Z"},
    }


@pytest.fixture
def primary_result(provider_output):
    return ProviderResult.model_validate(provider_output)
