from __future__ import annotations

import json
import logging
import math
from typing import Any
from uuid import uuid4

from abex_transport.errors import ContentStoreError
from abex_transport.models.schemas import BusinessInfo, FaqDraft, FaqEntry, SiteGlobals
from abex_transport.storage.content_store import ContentStore, document_path

logger = logging.getLogger("abex_transport.content")


def _number(value: Any) -> int | float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    return None


def _draft_order(value: Any) -> int | float:
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, (int, float)):
        return value
    try:
        order = float(str(value).strip())
    except ValueError:
        return 0
    if not math.isfinite(order):
        return 0
    return int(order) if order.is_integer() else order


def parse_faq_document(document: dict[str, Any]) -> list[FaqEntry]:
    entries: list[FaqEntry] = []
    for index, (entry_id, value) in enumerate(document.items()):
        parsed: Any = value
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
            except ValueError:
                parsed = {"question": value, "answer": ""}
        if not isinstance(parsed, dict):
            parsed = {}

        question = parsed.get("question")
        answer = parsed.get("answer")
        order = _number(parsed.get("order"))
        entries.append(
            FaqEntry(
                id=entry_id,
                question=question if isinstance(question, str) else ("" if value is None else str(value)),
                answer=answer if isinstance(answer, str) else "",
                order=order if order is not None else index + 1,
            )
        )
    entries.sort(key=lambda entry: entry.order or 0)
    return entries


class SiteContent:
    def __init__(self, store: ContentStore, globals_doc: str, faq_doc: str, default_business_name: str) -> None:
        self.store = store
        self.globals_doc = globals_doc
        self.faq_doc = faq_doc
        self.default_business_name = default_business_name

    @classmethod
    def from_settings(cls, settings, store: ContentStore) -> SiteContent:
        return cls(store, settings.content_globals_doc, settings.content_faq_doc, settings.default_business_name)

    def _require_path(self, raw: str, label: str) -> str:
        if document_path(raw) is None:
            raise ContentStoreError(f"{label} document path is not configured")
        return raw

    def get_globals(self) -> SiteGlobals:
        path = self._require_path(self.globals_doc, "Globals")
        document = self.store.read(path)
        if document is None:
            return SiteGlobals(business_name=self.default_business_name, error="Globals document not found")

        values = {key: value if isinstance(value, str) else str(value) for key, value in document.items() if value is not None}
        business_name = values.get("business_name", "").strip() or self.default_business_name
        return SiteGlobals(globals=values, business_name=business_name)

    def save_business_info(self, info: BusinessInfo) -> SiteGlobals:
        path = self._require_path(self.globals_doc, "Globals")
        self.store.merge(path, info.model_dump())
        logger.info("business_info_saved path=%s", path)
        return self.get_globals()

    def list_faqs(self) -> list[FaqEntry]:
        path = self._require_path(self.faq_doc, "FAQ")
        document = self.store.read(path)
        if document is None:
            return []
        return parse_faq_document(document)

    def save_faq(self, faq_id: str, draft: FaqDraft) -> FaqEntry:
        path = self._require_path(self.faq_doc, "FAQ")
        if not draft.question.strip() or not draft.answer.strip():
            raise ContentStoreError("Question and answer required", status_code=400)

        entry = FaqEntry(id=faq_id, question=draft.question, answer=draft.answer, order=_draft_order(draft.order))
        self.store.merge(path, {faq_id: entry.model_dump(exclude={"id"})})
        logger.info("faq_saved id=%s", faq_id)
        return entry

    def create_faq(self, draft: FaqDraft) -> FaqEntry:
        order = draft.order
        if order is None or (isinstance(order, str) and not order.strip()):
            order = len(self.list_faqs()) + 1
        return self.save_faq(str(uuid4()), draft.model_copy(update={"order": order}))

    def remove_faq(self, faq_id: str) -> None:
        path = self._require_path(self.faq_doc, "FAQ")
        self.store.delete_field(path, faq_id)
        logger.info("faq_removed id=%s", faq_id)
