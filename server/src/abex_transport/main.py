from __future__ import annotations

import json
import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any
from uuid import uuid4

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse, Response

from abex_transport.auth import AdminAuthenticator, AuthError
from abex_transport.catalog.nhtsa import EARLIEST_MODEL_YEAR, VehicleCatalog
from abex_transport.config import settings
from abex_transport.content.site_content import SiteContent
from abex_transport.errors import ContactDeliveryError, ContactFormError, ContentStoreError, LeadValidationError
from abex_transport.leads.forwarder import GENERIC_FAILURE_MESSAGE, QuoteForwarder
from abex_transport.leads.submission import build_lead_payload
from abex_transport.models.schemas import BusinessInfo, FaqDraft, FaqEntry, SiteGlobals
from abex_transport.notifications.contact import ContactMailer, parse_contact_form
from abex_transport.storage.content_store import ContentStore

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("abex_transport")

FORM_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.quote_forwarder = QuoteForwarder.from_settings(settings)
    app.state.contact_mailer = ContactMailer.from_settings(settings)
    app.state.vehicle_catalog = VehicleCatalog.from_settings(settings)
    app.state.site_content = SiteContent.from_settings(settings, ContentStore.from_settings(settings))
    logger.info("services_started webhook=%s", settings.quote_webhook_url)
    try:
        yield
    finally:
        await app.state.quote_forwarder.aclose()
        await app.state.vehicle_catalog.aclose()
        logger.info("services_stopped")


app = FastAPI(title="Abex Transport API", lifespan=lifespan)
authenticator = AdminAuthenticator.from_settings()


def get_quote_forwarder(request: Request) -> QuoteForwarder:
    return request.app.state.quote_forwarder


def get_contact_mailer(request: Request) -> ContactMailer:
    return request.app.state.contact_mailer


def get_vehicle_catalog(request: Request) -> VehicleCatalog:
    return request.app.state.vehicle_catalog


def get_site_content(request: Request) -> SiteContent:
    return request.app.state.site_content


def _client_ip(request: Request) -> str:
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",", maxsplit=1)[0].strip()
    if request.client:
        return request.client.host
    return "unknown"


@app.middleware("http")
async def request_audit_log(request: Request, call_next):
    request_id = request.headers.get("x-request-id") or str(uuid4())
    request.state.request_id = request_id
    started_at = time.perf_counter()
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    token_claims = getattr(request.state, "token_claims", None)

    logger.info(
        json.dumps(
            {
                "event": "http_request",
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "latency_ms": round((time.perf_counter() - started_at) * 1000, 2),
                "client_ip": _client_ip(request),
                "user_agent": request.headers.get("user-agent", "unknown"),
                "authenticated_sub": token_claims.get("sub") if isinstance(token_claims, dict) else None,
            },
            sort_keys=True,
        )
    )
    return response


@app.middleware("http")
async def enforce_admin_auth(request: Request, call_next):
    if not request.url.path.startswith("/admin") or authenticator is None:
        return await call_next(request)

    try:
        request.state.token_claims = authenticator.validate_authorization_header(request.headers.get("authorization"))
    except AuthError as exc:
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message},
            headers={"WWW-Authenticate": authenticator.challenge_header(error=exc.error, description=exc.message)},
        )

    return await call_next(request)


@app.exception_handler(ContentStoreError)
async def content_store_error(request: Request, exc: ContentStoreError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


def _form_response(status_code: int, content: dict[str, Any] | None = None) -> Response:
    if content is None:
        return Response(status_code=status_code, headers=CORS_HEADERS)
    return JSONResponse(status_code=status_code, content=content, headers=CORS_HEADERS)


def _preflight_or_reject(request: Request) -> Response | None:
    if request.method == "OPTIONS":
        return _form_response(204)
    if request.method != "POST":
        return _form_response(405, {"error": "Method not allowed"})
    return None


async def _json_object(request: Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


@app.get("/")
async def health() -> dict[str, str]:
    return {"status": "ok", "service": "abex-transport"}


@app.api_route("/submitQuoteRequest", methods=FORM_METHODS)
async def submit_quote_request(request: Request, forwarder: QuoteForwarder = Depends(get_quote_forwarder)):
    early = _preflight_or_reject(request)
    if early is not None:
        return early

    try:
        lead = build_lead_payload(await _json_object(request))
    except LeadValidationError as exc:
        return _form_response(exc.status_code, {"error": exc.message})

    try:
        reply = await forwarder.forward(lead)
    except Exception as exc:
        logger.exception("quote_webhook_unreachable error=%s", str(exc))
        return _form_response(502, {"error": GENERIC_FAILURE_MESSAGE})

    if not reply.ok:
        return _form_response(reply.status_code, {"error": reply.error_message()})
    return _form_response(200, {"success": True, "data": reply.body})


@app.api_route("/submitContactForm", methods=FORM_METHODS)
async def submit_contact_form(request: Request, mailer: ContactMailer = Depends(get_contact_mailer)):
    early = _preflight_or_reject(request)
    if early is not None:
        return early

    try:
        message = parse_contact_form(await _json_object(request))
    except ContactFormError as exc:
        return _form_response(exc.status_code, {"error": exc.message})

    try:
        await mailer.send(message)
    except ContactDeliveryError as exc:
        logger.exception("contact_email_failed error=%s", str(exc))
        return _form_response(500, {"error": "Failed to send message"})
    return _form_response(200, {"success": True})


@app.get("/content/globals")
def read_globals(content: SiteContent = Depends(get_site_content)) -> SiteGlobals:
    return content.get_globals()


@app.get("/content/faq")
def read_faq(content: SiteContent = Depends(get_site_content)) -> dict[str, list[FaqEntry]]:
    return {"faqs": content.list_faqs()}


@app.put("/admin/globals")
def update_business_info(info: BusinessInfo, content: SiteContent = Depends(get_site_content)) -> SiteGlobals:
    return content.save_business_info(info)


@app.post("/admin/faq", status_code=201)
def create_faq(draft: FaqDraft, content: SiteContent = Depends(get_site_content)) -> FaqEntry:
    return content.create_faq(draft)


@app.put("/admin/faq/{faq_id}")
def update_faq(faq_id: str, draft: FaqDraft, content: SiteContent = Depends(get_site_content)) -> FaqEntry:
    return content.save_faq(faq_id, draft)


@app.delete("/admin/faq/{faq_id}", status_code=204)
def delete_faq(faq_id: str, content: SiteContent = Depends(get_site_content)) -> Response:
    content.remove_faq(faq_id)
    return Response(status_code=204)


@app.get("/vehicles/models")
async def vehicle_models(make: str = "", year: str = "", catalog: VehicleCatalog = Depends(get_vehicle_catalog)):
    make = make.strip()
    try:
        model_year = int(year)
    except ValueError:
        model_year = None

    if not make or model_year is None or not EARLIEST_MODEL_YEAR <= model_year <= datetime.now().year:
        return JSONResponse(status_code=400, content={"error": "A vehicle make and a valid model year are required."})

    models = await catalog.models_for(make, model_year)
    return {"models": [model.model_dump() for model in models]}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("abex_transport.main:app", host="0.0.0.0", port=8080, reload=False)
