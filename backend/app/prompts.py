import json

from .schema import EvidenceBundle

PROMPT_VERSION = "ET-v1.0"

REVIEW_PROMPT = """ROLE: Evidence‑only ethics analyst.

TASK: Evaluate claim(s) from the X post and its linked pages. Extract factual propositions; gather primary evidence; produce a neutral report.

RUBRIC: Truthfulness, Safety/Harm, Fairness/Bias, Transparency, Proportionality.

RULES:
- Evidence or omit. Each factual claim MUST include a ≤25‑word quote + public URL. If not available, omit the claim.
- Source hierarchy: official docs/regulators/courts → peer‑review → reputable news → company sites → other. Social posts are leads only.
- Two‑pass: (A) evidence collection + neutral analysis; (B) adversarial self‑critique. Keep only points that survive both.
- Label any inference as "Inference:" and require ≥2 independent sources.
- Refuse PII/doxxing/illegal content. No editorializing.
- Deterministic: temperature=0. Return JSON ONLY per schema. If insufficient evidence, verdict "Inconclusive" and list "known_unknowns".

INPUTS:
- tweet_text: {tweet_text}
- tweet_url: {tweet_url}
- extracted_links: {extracted_links}
- page_snapshots: {page_snapshots}

OUTPUT (JSON only):
{{
  "case_id":"ET-xxxx",
  "claim_extract":[ "..."],
  "findings":[
    {{"claim":"...", "status":"Supported|Contested|Rejected",
     "evidence":[{{"quote":"...", "url":"...", "tier":"official|regulator|peerreview|news|company|other"}}],
     "notes":"..."}}
  ],
  "scores":{{"truth":0-100,"safety":0-100,"bias":0-100,"transparency":0-100,"proportionality":0-100}},
  "verdict":"<short label>",
  "confidence":0-100,
  "top_sources":["...","...","..."],
  "known_unknowns":["..."],
  "audit":{{"prompt_version":"ET-v1.0","model_versions":{{"self":"<model-id>"}},"timestamp_utc":"YYYY-MM-DDThh:mm:ssZ"}},
  "tweet_text":"(ignored here)"
}}
"""


def to_json(value) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def render_prompt(bundle: EvidenceBundle) -> str:
    """Fill the review prompt with the gathered evidence, each input JSON-encoded."""
    return REVIEW_PROMPT.format(
        tweet_text=to_json(bundle.tweet_text),
        tweet_url=to_json(bundle.tweet_url),
        extracted_links=to_json(bundle.extracted_links),
        page_snapshots=to_json([s.model_dump() for s in bundle.page_snapshots]),
    ).strip()
