# app/fusion.py
import math
from typing import Dict, Iterable, List, Optional, Sequence, Set

from .schema import Evidence, MergedFinding, ProviderResult

HIGH_TIERS = {"official", "regulator", "peerreview"}
STATUS_ORDER = {"Supported": 0, "Contested": 1, "Rejected": 2}

VERDICT_SUPPORTED = "Supported claims with safety basis"
VERDICT_INCONCLUSIVE = "Inconclusive"
VERDICT_MIXED = "Mixed evidence; further review needed"


def dedupe_evidence(evidence: Iterable[Evidence]) -> List[Evidence]:
    """Trim quote/url and drop repeated (quote, url) pairs, keeping first-seen order."""
    seen = set()
    out = []
    for ev in evidence:
        quote = (ev.quote or "").strip()
        url = (ev.url or "").strip()
        key = (quote, url)
        if key in seen:
            continue
        seen.add(key)
        out.append(Evidence(quote=quote, url=url, tier=ev.tier or "other"))
    return out


def resolve_status(statuses: Set[str], high: int) -> str:
    if statuses == {"Supported"} and high >= 2:
        return "Supported"
    if high >= 1:
        return "Contested"
    return "Rejected"


def merge_findings(results: Sequence[Optional[ProviderResult]]) -> List[MergedFinding]:
    # claim -> (evidence, statuses); dicts keep first-seen claim order
    buckets: Dict[str, tuple] = {}
    for result in results:
        if result is None:
            continue
        for f in result.findings:
            claim = (f.claim or "").strip()
            if claim not in buckets:
                buckets[claim] = ([], set())
            evidence, statuses = buckets[claim]
            evidence.extend(f.evidence)
            statuses.add(f.status or "Contested")

    merged = []
    for claim, (evidence, statuses) in buckets.items():
        ev = dedupe_evidence(evidence)
        high = sum(1 for e in ev if e.tier in HIGH_TIERS)
        merged.append(MergedFinding(claim=claim, status=resolve_status(statuses, high), evidence=ev))

    merged.sort(key=lambda f: (STATUS_ORDER[f.status], -len(f.evidence)))
    return merged


def derive_verdict(findings: Sequence[MergedFinding]) -> str:
    if any(f.status == "Supported" for f in findings):
        return VERDICT_SUPPORTED
    if all(f.status == "Rejected" for f in findings):
        return VERDICT_INCONCLUSIVE
    return VERDICT_MIXED


def confidence_of(findings: Sequence[MergedFinding]) -> float:
    t = max(len(findings), 1)
    sup = sum(1 for f in findings if f.status == "Supported")
    con = sum(1 for f in findings if f.status == "Contested")
    c = round((sup / t) * 0.9 - (con / t) * 0.2, 4)
    return max(0.0, min(0.95, c))


def top_sources(findings: Sequence[MergedFinding], k: int = 3) -> List[str]:
    urls: List[str] = []
    for f in findings:
        for e in f.evidence:
            if len(urls) >= k:
                return urls
            if e.url and e.url not in urls:
                urls.append(e.url)
    return urls[:k]


def confidence_percent(confidence: float) -> int:
    # half-up, so 0.125 reads as 13%
    return int(math.floor(confidence * 100 + 0.5))


def compose_tweet(case_id: str, verdict: str, confidence: float, hosts: List[str], report_url: str) -> str:
    return (
        f"EthicalTruth Review · Case {case_id} — Verdict: {verdict}. "
        f"Confidence {confidence_percent(confidence)}%. Sources: {', '.join(hosts)}. "
        f"Full: {report_url}"
    )
