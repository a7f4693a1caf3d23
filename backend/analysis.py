# analysis.py — AI-assisted pull-request review
import json
import logging
from typing import Any, Dict, List

from fastapi import Depends

from exceptions import ValidationError, ExternalServiceError, NotFoundError
from llm import LLMClient, get_llm_client
from models import PrReview, RiskLevel, utcnow
from recorder import Recorder, get_recorder
from schemas import PrAnalyzeRequest
from storage import Storage, get_storage

logger = logging.getLogger("syncflow.analysis")

REVIEWER_INSTRUCTIONS = """You are a senior code reviewer. Analyze the provided code diff or PR information and provide:
1. A brief summary (2-3 sentences)
2. Risk level (Low, Medium, or High)
3. A checklist of items to review (3-6 items)

Respond in JSON format:
{
  "summary": "Brief description of what this PR does",
  "riskLevel": "Low|Medium|High",
  "checklist": [
    { "id": "c1", "text": "Check item description", "checked": false },
    { "id": "c2", "text": "Another check item", "checked": false }
  ]
}"""

DEFAULT_SUMMARY = "Analysis completed"


def parse_analysis(text: str) -> Dict[str, Any]:
    """Decode the model's JSON reply, tolerating a fenced code block."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = cleaned.strip("`")
        if cleaned.lower().startswith("json"):
            cleaned = cleaned[4:]
    try:
        data = json.loads(cleaned)
    except ValueError as e:
        raise ExternalServiceError("Language model returned unparseable analysis") from e
    if not isinstance(data, dict):
        raise ExternalServiceError("Language model analysis is not a JSON object")
    return data


def normalize_risk(value) -> RiskLevel:
    if isinstance(value, str):
        for level in RiskLevel:
            if level.value.lower() == value.strip().lower():
                return level
    return RiskLevel.MEDIUM


def normalize_checklist(value) -> List[Dict[str, Any]]:
    if not isinstance(value, list):
        return []
    items = []
    for idx, raw in enumerate(value, start=1):
        if not isinstance(raw, dict):
            continue
        text = str(raw.get("text") or "").strip()
        if not text:
            continue
        item_id = raw.get("id")
        items.append({
            "id": str(item_id) if item_id not in (None, "") else f"c{idx}",
            "text": text,
            "checked": bool(raw.get("checked", False)),
        })
    return items


class PrAnalyzer:
    """Input check -> model analysis -> persist review -> activity + notification.

    Nothing is written unless the model call succeeds; the review and its side
    effects are committed together.
    """

    def __init__(self, store: Storage, recorder: Recorder, llm: LLMClient):
        self.store = store
        self.recorder = recorder
        self.llm = llm

    def _check_input(self, request: PrAnalyzeRequest):
        errors = []
        if not (request.diff_content or request.pr_url):
            errors.append({"field": "diffContent", "message": "Either diffContent or prUrl is required"})
        if not request.author_id:
            errors.append({"field": "authorId", "message": "authorId is required"})
        if errors:
            raise ValidationError(errors, message="; ".join(e["message"] for e in errors))

    async def analyze(self, request: PrAnalyzeRequest) -> PrReview:
        self._check_input(request)
        if await self.store.get_user(request.author_id) is None:
            raise NotFoundError(f"User not found (authorId={request.author_id})")

        content = request.diff_content or f"PR URL: {request.pr_url}"
        reply = await self.llm.generate(
            f"Analyze this code change:\n\n{content}",
            system=REVIEWER_INSTRUCTIONS,
            json_mode=True,
        )
        analysis = parse_analysis(reply)

        title = request.title or f"PR Analysis - {utcnow().date().isoformat()}"
        async with self.store.atomic():
            review = await self.store.create_pr_review({
                "title": title,
                "author_id": request.author_id,
                "risk_level": normalize_risk(analysis.get("riskLevel")),
                "summary": str(analysis.get("summary") or DEFAULT_SUMMARY),
                "checklist": normalize_checklist(analysis.get("checklist")),
            })
            await self.recorder.record_activity(request.author_id, "analyzed PR", review.title)
            risk = review.risk_level.value if hasattr(review.risk_level, "value") else review.risk_level
            await self.recorder.record_notification(
                request.author_id,
                "pr_review",
                "PR Analysis Complete",
                f'Your PR "{review.title}" has been analyzed. Risk level: {risk}',
                link="/prs",
            )

        logger.info(f"PR analysis stored: {review.id} ({risk}) for author {request.author_id}")
        return review


def get_pr_analyzer(
    store: Storage = Depends(get_storage),
    recorder: Recorder = Depends(get_recorder),
    llm: LLMClient = Depends(get_llm_client),
) -> PrAnalyzer:
    return PrAnalyzer(store, recorder, llm)
