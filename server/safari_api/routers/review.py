"""Review router for review and rating operations."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import CurrentUser, get_current_user, get_db
from ..models.review import Review as ReviewModel
from ..schemas.review import (
    CreateReviewRequest,
    HelpfulVoteRequest,
    ListReviewsRequest,
    RatingInput,
    RespondToReviewRequest,
    Review,
    ReviewList,
)
from ..services.review_service import ReviewService

router = APIRouter(prefix="/v1/review", tags=["review"])

DB_DEPENDENCY = Depends(get_db)
AUTH_DEPENDENCY = Depends(get_current_user)


def _convert_review_to_schema(review_model: ReviewModel) -> Review:
    """Convert review model to schema."""
    return Review(
        id=str(review_model.id),
        user_id=str(review_model.user_id),
        tour_id=str(review_model.tour_id),
        booking_id=str(review_model.booking_id),
        rating=RatingInput(
            overall=review_model.overall,
            guide=review_model.guide,
            accommodation=review_model.accommodation,
            food=review_model.food,
            value=review_model.value
        ),
        average_rating=review_model.average_rating,
        title=review_model.title,
        comment=review_model.comment,
        pros=list(review_model.pros or []),
        cons=list(review_model.cons or []),
        is_verified=review_model.is_verified,
        helpful_count=review_model.helpful_count,
        response_text=review_model.response_text,
        responded_at=review_model.responded_at,
        created_at=review_model.created_at
    )


def _review_response(review_model: ReviewModel) -> JSONResponse:
    return JSONResponse(status_code=200, content=_convert_review_to_schema(review_model).model_dump(mode="json"))


@router.post("/create", response_model=Review)
async def create_review(
    request: CreateReviewRequest,
    db: AsyncSession = DB_DEPENDENCY,
    current_user: CurrentUser = AUTH_DEPENDENCY
) -> JSONResponse:
    """Review a booked tour; updates the tour and park ratings."""
    review = await ReviewService(db).create_review(request, current_user)
    return _review_response(review)


@router.post("/list", response_model=ReviewList)
async def list_reviews(
    request: ListReviewsRequest,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """List a tour's public reviews, newest first."""
    reviews = await ReviewService(db).list_reviews_for_tour(request.tour_id)
    response_data = ReviewList(reviews=[_convert_review_to_schema(r) for r in reviews])
    return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))


@router.post("/mine", response_model=ReviewList)
async def list_my_reviews(
    db: AsyncSession = DB_DEPENDENCY,
    current_user: CurrentUser = AUTH_DEPENDENCY
) -> JSONResponse:
    """List the caller's own reviews, newest first."""
    reviews = await ReviewService(db).list_reviews_for_user(current_user.user_id)
    response_data = ReviewList(reviews=[_convert_review_to_schema(r) for r in reviews])
    return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))


@router.post("/helpful", response_model=Review)
async def mark_helpful(
    request: HelpfulVoteRequest,
    db: AsyncSession = DB_DEPENDENCY,
    current_user: CurrentUser = AUTH_DEPENDENCY
) -> JSONResponse:
    """Mark a review as helpful."""
    review = await ReviewService(db).mark_helpful(request.review_id, current_user)
    return _review_response(review)


@router.post("/unhelpful", response_model=Review)
async def unmark_helpful(
    request: HelpfulVoteRequest,
    db: AsyncSession = DB_DEPENDENCY,
    current_user: CurrentUser = AUTH_DEPENDENCY
) -> JSONResponse:
    """Withdraw a helpful vote."""
    review = await ReviewService(db).unmark_helpful(request.review_id, current_user)
    return _review_response(review)


@router.post("/respond", response_model=Review)
async def respond_to_review(
    request: RespondToReviewRequest,
    db: AsyncSession = DB_DEPENDENCY,
    current_user: CurrentUser = AUTH_DEPENDENCY
) -> JSONResponse:
    """Respond to a review as the tour's agency."""
    review = await ReviewService(db).respond(request.review_id, request.text, current_user)
    return _review_response(review)
