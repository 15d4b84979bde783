# app/pipeline.py
import html
import logging
import re
from typing import List, Optional

import requests
import tldextract, trafilatura

from .config import settings
from .schema import EvidenceBundle, PageSnapshot

logger = logging.getLogger(__name__)

OEMBED_URL = "https://publish.twitter.com/oembed"
USER_AGENT = "EthicalTruthBot/1.0"
MAX_LINKS = 3

STATUS_URL_RE = re.compile(r"https?://(?:www\.|mobile\.)?(?:x|twitter)\.com/[^\s]+/status/\d+", re.IGNORECASE)
LINK_RE = re.compile(r"https?://[^\s)]+")
TAG_RE = re.compile(r"<[^>]+>")
SPACE_RE = re.compile(r"\s+")

# bundled public suffix snapshot, no network fetch
_tld_extract = tldextract.TLDExtract(suffix_list_urls=())


def strip_html(s: Optional[str]) -> str:
    text = TAG_RE.sub(" ", s or "")
    return SPACE_RE.sub(" ", html.unescape(text)).strip()


def is_status_url(url: str) -> bool:
    return bool(STATUS_URL_RE.fullmatch(url.strip().split("?")[0].rstrip("/")))


def extract_host(url: str) -> str:
    """Host part of a URL, e.g. 'www.who.int' for 'https://www.who.int/news'."""
    url = str(url)
    host = _tld_extract(url).fqdn
    if host:
        return host
    return re.sub(r"^https?://", "", url, flags=re.IGNORECASE).split("/")[0]


def extract_first_status_url(text: str) -> Optional[str]:
    m = STATUS_URL_RE.search(text or "")
    return m.group(0) if m else None


def extract_links(text: str, limit: int = MAX_LINKS) -> List[str]:
    links = []
    for u in LINK_RE.findall(text or ""):
        if "/status/" in u or u in links:
            continue
        links.append(u)
    return links[:limit]


def fetch_tweet_text(x_url: str) -> str:
    logger.info(f"Fetching oEmbed for: {x_url}")
    try:
        response = requests.get(
            OEMBED_URL,
            params={"url": x_url},
            headers={"User-Agent": USER_AGENT},
            timeout=settings.http_timeout,
        )
        response.raise_for_status()
        text = strip_html(response.json().get("html", ""))
    except (requests.RequestException, ValueError) as e:
        logger.warning(f"oEmbed lookup failed for {x_url}: {e}")
        return ""
    logger.debug(f"Tweet text preview: {text[:200]}")
    return text


def fetch_page_snapshot(url: str) -> PageSnapshot:
    logger.info(f"Fetching page snapshot: {url}")
    try:
        downloaded = trafilatura.fetch_url(url)
        if not downloaded:
            logger.warning(f"No content downloaded for {url}")
            return PageSnapshot(url=url)
        metadata = trafilatura.extract_metadata(downloaded)
        title = (metadata.title or "") if metadata else ""
        clean = trafilatura.extract(downloaded, include_comments=False, include_tables=False) or ""
    except Exception as e:
        logger.warning(f"Snapshot failed for {url}: {e}")
        return PageSnapshot(url=url)

    paragraphs = [p.strip() for p in clean.split("\n") if p.strip()]
    paragraphs += ["", ""]
    logger.info(f"Extracted {len(clean)} characters from {url}")
    return PageSnapshot(
        url=url,
        title=title.strip()[:200],
        snippet1=paragraphs[0][:300],
        snippet2=paragraphs[1][:300],
    )


def gather_evidence(x_url: str) -> EvidenceBundle:
    """Collect the post text, its canonical URL, outbound links and page snapshots."""
    tweet_text = fetch_tweet_text(x_url)
    tweet_url = extract_first_status_url(tweet_text) or x_url
    links = extract_links(tweet_text)
    snapshots = [fetch_page_snapshot(u) for u in links]
    return EvidenceBundle(
        tweet_text=tweet_text,
        tweet_url=tweet_url,
        extracted_links=links,
        page_snapshots=snapshots,
    )
