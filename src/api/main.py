"""
FastAPI backend: REST API over the card repository.
Run with uvicorn: uvicorn api.main:app --reload
"""

import logging
import os
import re
import threading
from dataclasses import asdict
from pathlib import Path

from dotenv import load_dotenv

# Load .env from repo root (when run from repo root or from Docker)
for path in (
    Path(__file__).resolve().parent.parent.parent / ".env",
    Path.cwd() / ".env",
):
    if path.exists():
        load_dotenv(path)
        break

from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from neo4j import GraphDatabase
from pydantic import BaseModel, field_validator

from cardkeep.application import (
    CardRepository,
    CardStorage,
    DuplicateRejected,
    PersistenceFailure,
)
from cardkeep.domain import Card, CardDraft
from cardkeep.infrastructure import (
    DEFAULT_NAMESPACE,
    InMemoryCardStorage,
    JsonFileCardStorage,
    Neo4jCardStorage,
    cards_to_csv,
    cards_to_vcard,
    ensure_card_collection_constraint,
)

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)
logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = "data/cards.json"

_repository_lock = threading.Lock()


def _get_driver():
    uri = os.environ.get("NEO4J_URI", "bolt://localhost:7687").strip()
    user = os.environ.get("NEO4J_USER", "neo4j").strip()
    password = os.environ.get("NEO4J_PASSWORD", "password").strip()
    return GraphDatabase.driver(uri, auth=(user, password))


def _get_cached_driver(app: FastAPI):
    if getattr(app.state, "driver", None) is None:
        app.state.driver = _get_driver()
    return app.state.driver


def _build_storage(app: FastAPI) -> CardStorage:
    """Pick the storage backend from CARDKEEP_STORAGE (json, memory, or neo4j)."""
    kind = os.environ.get("CARDKEEP_STORAGE", "json").strip().lower()
    namespace = os.environ.get("CARDKEEP_NAMESPACE", "").strip() or DEFAULT_NAMESPACE
    if kind == "memory":
        return InMemoryCardStorage()
    if kind == "neo4j":
        driver = _get_cached_driver(app)
        ensure_card_collection_constraint(driver)
        return Neo4jCardStorage(driver, namespace=namespace)
    if kind == "json":
        data_file = os.environ.get("CARDKEEP_DATA_FILE", "").strip() or DEFAULT_DATA_FILE
        return JsonFileCardStorage(Path(data_file), namespace=namespace)
    raise ValueError(f"Unknown CARDKEEP_STORAGE {kind!r} (expected json, memory, or neo4j)")


def get_repository(app: FastAPI) -> CardRepository:
    """Return the single shared repository, building it on first use."""
    repo = getattr(app.state, "repository", None)
    if repo is not None:
        return repo
    with _repository_lock:
        # Another request may have built it while this one waited.
        if getattr(app.state, "repository", None) is None:
            storage = _build_storage(app)
            app.state.repository = CardRepository(storage)
            logger.info("Card repository ready (%s)", type(storage).__name__)
        return app.state.repository


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.repository = None
    app.state.driver = None
    try:
        yield
    finally:
        if getattr(app.state, "driver", None) is not None:
            app.state.driver.close()


app = FastAPI(title="cardkeep API", lifespan=lifespan)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={
            "detail": [
                {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
                for err in exc.errors()
            ]
        },
    )


@app.exception_handler(PersistenceFailure)
async def persistence_failure_handler(request: Request, exc: PersistenceFailure):
    return JSONResponse(
        status_code=503,
        content={"detail": "Card saved in memory but not written to storage", "card_id": exc.card_id},
    )


# --- REST: health ---


@app.get("/health")
def health():
    return {"status": "ok"}


# --- REST: cards ---

_EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_PHONE = re.compile(r"^[+]?[(]?[0-9]{1,4}[)]?[-\s.]?[0-9]{1,4}[-\s.]?[0-9]{1,9}$")
_WEBSITE = re.compile(
    r"^(https?://)?(www\.)?[-a-zA-Z0-9@:%._+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}\b"
    r"([-a-zA-Z0-9()@:%_+.~#?&/=]*)$"
)


class CardFields(BaseModel):
    title: str | None = None
    company: str | None = None
    email: str | None = None
    phone: str | None = None
    website: str | None = None
    address: str | None = None
    notes: str | None = None
    image_ref: str | None = None


class CreateCardBody(CardFields):
    name: str
    id: str | None = None


class UpdateCardBody(CardFields):
    """Edits made by hand are checked; OCR/import inserts are stored as extracted."""

    name: str | None = None

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str | None) -> str | None:
        if value and value.strip() and not _EMAIL.match(value.strip()):
            raise ValueError("Please enter a valid email address")
        return value

    @field_validator("phone")
    @classmethod
    def check_phone(cls, value: str | None) -> str | None:
        if value and value.strip() and not _PHONE.match(value.strip()):
            raise ValueError("Please enter a valid phone number")
        return value

    @field_validator("website")
    @classmethod
    def check_website(cls, value: str | None) -> str | None:
        if value and value.strip() and not _WEBSITE.match(value.strip()):
            raise ValueError("Please enter a valid website URL")
        return value


class CardItem(CardFields):
    id: str
    name: str
    created_at: int
    updated_at: int


def _to_item(card: Card) -> CardItem:
    return CardItem(**asdict(card))


def _to_draft(body: CreateCardBody) -> CardDraft:
    values = body.model_dump(exclude_none=True)
    try:
        return CardDraft(**values)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@app.post("/cards")
def create_card(body: CreateCardBody, request: Request):
    repo = get_repository(request.app)
    draft = _to_draft(body)
    try:
        result = repo.insert(draft)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    if isinstance(result, DuplicateRejected):
        return JSONResponse(
            content={
                "detail": "Card already exists",
                "duplicate": _to_item(result.card).model_dump(),
            },
            status_code=409,
        )
    return JSONResponse(content=_to_item(result).model_dump(), status_code=201)


@app.post("/cards/duplicates")
def check_duplicate(body: CreateCardBody, request: Request):
    """Pre-flight duplicate check; stores nothing."""
    repo = get_repository(request.app)
    existing = repo.find_duplicate(_to_draft(body))
    return {"duplicate": _to_item(existing) if existing else None}


@app.get("/cards")
def list_cards(request: Request) -> list[CardItem]:
    repo = get_repository(request.app)
    return [_to_item(card) for card in repo.list_all()]


@app.get("/cards/search")
def search_cards(q: str, request: Request) -> list[CardItem]:
    repo = get_repository(request.app)
    return [_to_item(card) for card in repo.search(q)]


@app.get("/cards/export.csv")
def export_csv(request: Request):
    repo = get_repository(request.app)
    return PlainTextResponse(
        cards_to_csv(repo.list_all()),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="business_cards.csv"'},
    )


@app.get("/cards/export.vcf")
def export_vcard(request: Request):
    repo = get_repository(request.app)
    region = os.environ.get("CARDKEEP_DEFAULT_REGION", "").strip().upper() or None
    return PlainTextResponse(
        cards_to_vcard(repo.list_all(), default_region=region),
        media_type="text/vcard",
        headers={"Content-Disposition": 'attachment; filename="business_cards.vcf"'},
    )


@app.get("/cards/{card_id}")
def get_card(card_id: str, request: Request) -> CardItem:
    repo = get_repository(request.app)
    card = repo.get(card_id)
    if card is None:
        raise HTTPException(status_code=404, detail="Card not found")
    return _to_item(card)


@app.patch("/cards/{card_id}")
def update_card(card_id: str, body: UpdateCardBody, request: Request) -> CardItem:
    repo = get_repository(request.app)
    try:
        card = repo.update(card_id, body.model_dump(exclude_unset=True))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    if card is None:
        raise HTTPException(status_code=404, detail="Card not found")
    return _to_item(card)


@app.delete("/cards/{card_id}", status_code=204)
def delete_card(card_id: str, request: Request):
    repo = get_repository(request.app)
    repo.remove(card_id)
    return Response(status_code=204)
