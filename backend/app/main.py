import hashlib
import logging
import secrets
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from sqlmodel import SQLModel, Session, create_engine

from .config import settings
from .schema import ErrorResponse, EvidenceBundle, ProviderResult, Report, ReviewRequest
from .pipeline import gather_evidence, extract_host, is_status_url
from .prompts import render_prompt, to_json
from .storage import save_report, get_latest_report
from .fusion import merge_findings, derive_verdict, confidence_of, top_sources, compose_tweet
from .clients.llm_client import ProviderError
from .clients import review_client


logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger(__name__)

FALLBACK_UNKNOWNS = ["Failed to fetch sources or model output invalid."]

# Database
connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}
engine = create_engine(settings.database_url, echo=False, connect_args=connect_args)
SQLModel.metadata.create_all(engine)

# FastAPI app
app = FastAPI(title="EthicalTruth Review API")

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def error_response(status_code: int, error: str, verdict: Optional[str] = None,
                   known_unknowns: Optional[List[str]] = None) -> JSONResponse:
    body = ErrorResponse(error=error, verdict=verdict, known_unknowns=known_unknowns)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


# ---------- ERROR HANDLERS ----------
@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.info(f"Rejected request body: {exc.errors()}")
    return error_response(400, "Request body must be JSON { x_url }")


@app.exception_handler(Exception)
async def internal_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error")
    return error_response(500, str(exc) or "Internal error", "Inconclusive", FALLBACK_UNKNOWNS)


def report_hash(x_url: str, prompt: str, outputs: List[ProviderResult]) -> str:
    h = hashlib.sha256()
    h.update(x_url.encode("utf-8"))
    h.update(prompt.encode("utf-8"))
    h.update(to_json([o.model_dump(mode="json", exclude_unset=True) for o in outputs]).encode("utf-8"))
    return "sha256:" + h.hexdigest()


def build_report(x_url: str, prompt: str, primary: ProviderResult,
                 secondary: Optional[ProviderResult]) -> Report:
    merged = merge_findings([secondary, primary])
    verdict = derive_verdict(merged)
    confidence = confidence_of(merged)
    sources = top_sources(merged, 3)

    case_id = primary.case_id or (secondary.case_id if secondary else None) \
        or "ET-" + secrets.token_hex(4).upper()
    report_url = f"{settings.report_base.rstrip('/')}/{case_id}"
    tweet_text = compose_tweet(case_id, verdict, confidence, [extract_host(u) for u in sources], report_url)

    known_unknowns = list(primary.known_unknowns)
    if secondary:
        known_unknowns += secondary.known_unknowns
    outputs = [primary] + ([secondary] if secondary else [])

    return Report(
        case_id=case_id,
        verdict=verdict,
        confidence=confidence,
        findings=merged,
        scores=primary.scores,
        top_sources=sources,
        known_unknowns=list(dict.fromkeys(known_unknowns)),
        tweet_text=tweet_text,
        report_url=report_url,
        hash=report_hash(x_url, prompt, outputs),
    )


@app.get("/health")
def health():
    return {"status": "ok", "secondary_provider": bool(settings.grok_api_key)}


# ---------- REVIEW ENDPOINT ----------
@app.post("/review", response_model=Report, responses={400: {"model": ErrorResponse}, 422: {"model": ErrorResponse}})
def review(req: ReviewRequest):
    if not req.x_url:
        raise HTTPException(400, "x_url required")
    if settings.strict_x_url and not is_status_url(req.x_url):
        raise HTTPException(400, "x_url must be an X/Twitter post URL")

    bundle: EvidenceBundle = gather_evidence(req.x_url)
    prompt = render_prompt(bundle)
    logger.info(f"Reviewing {bundle.tweet_url} with {len(bundle.extracted_links)} linked pages")

    try:
        primary = review_client.evaluate_primary(prompt)
    except ProviderError as e:
        logger.error(f"Review failed for {req.x_url}: {e}")
        return error_response(422, str(e), "Inconclusive", FALLBACK_UNKNOWNS)
    secondary = review_client.evaluate_secondary(prompt)

    report = build_report(req.x_url, prompt, primary, secondary)
    logger.info(f"Case {report.case_id}: {report.verdict} ({report.confidence})")

    with Session(engine) as session:
        save_report(session, req.x_url, report)

    return report


@app.api_route("/review", methods=["GET", "HEAD", "PUT", "PATCH", "DELETE"], include_in_schema=False)
def review_wrong_method():
    raise HTTPException(405, "Use POST with JSON { x_url }")


@app.get("/reports/{case_id}", response_model=Report, responses={404: {"model": ErrorResponse}})
def get_report(case_id: str):
    with Session(engine) as session:
        report = get_latest_report(session, case_id)
    if report is None:
        raise HTTPException(404, f"No report for case {case_id}")
    return report
