# routers/pr_reviews.py — Pull-request reviews, manual and AI-assisted
from typing import List

from fastapi import APIRouter, Depends

from analysis import PrAnalyzer, get_pr_analyzer
from exceptions import NotFoundError
from recorder import Recorder, get_recorder
from schemas import PrReviewCreate, PrAnalyzeRequest, PrReviewOut, pr_review_out
from storage import Storage, get_storage

router = APIRouter(prefix="/api/v1/pr-reviews", tags=["PR Reviews"])


@router.get("", response_model=List[PrReviewOut])
async def list_pr_reviews(store: Storage = Depends(get_storage)):
    return [pr_review_out(p) for p in await store.list_pr_reviews()]


@router.post("/analyze", response_model=PrReviewOut, status_code=201)
async def analyze_pr(data: PrAnalyzeRequest, analyzer: PrAnalyzer = Depends(get_pr_analyzer)):
    """
    Run the diff (or PR URL) past the language model and store the result.

    Persists the review, an "analyzed PR" activity and a notification to the
    author in one transaction. Model failures return 502 and store nothing.
    """
    return pr_review_out(await analyzer.analyze(data))


@router.get("/{review_id}", response_model=PrReviewOut)
async def get_pr_review(review_id: str, store: Storage = Depends(get_storage)):
    review = await store.get_pr_review(review_id)
    if not review:
        raise NotFoundError("PR review not found")
    return pr_review_out(review)


@router.post("", response_model=PrReviewOut, status_code=201)
async def create_pr_review(
    data: PrReviewCreate,
    store: Storage = Depends(get_storage),
    recorder: Recorder = Depends(get_recorder),
):
    async with store.atomic():
        review = await store.create_pr_review(data)
        await recorder.record_activity(review.author_id, "submitted PR", review.title)
    return pr_review_out(review)
