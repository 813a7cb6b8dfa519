"""Champion review endpoints.

Public reads by id, champion and username; create/update/delete require a
bearer token accepted by the UserAllowed policy.
Security: Only the author of a review may edit or delete it. A rejected
ownership check surfaces as a 500 with a generic message, matching the
responses existing clients already handle.
"""
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from typing import Optional
from sqlalchemy.orm import Session

from models.reviews import ReviewCreate, ReviewUpdate, ReviewResponse, ReviewView
from services.auth import require_user_allowed
from services.champions import ChampionService
from services.database import get_session
from services.reviews import ReviewOutcome, ReviewService, MAX_RATING, MIN_RATING, MIN_TEXT_LENGTH
from services.users import UserService

router = APIRouter(prefix="/api/review", tags=["review"])

CREATE_FAILED = "Sorry. Something went wrong while creating this review"
UPDATE_FAILED = "Something went wrong while updating the review. Are you trying to modify someone else review?"
DELETE_FAILED = "Something went wrong while deleting the review"


def query_int(name: str, default: Optional[int] = None):
    """
    Dependency reading an integer query parameter regardless of its casing.

    Existing clients send ?Rating=, ?rating=, ?ChampionId= and ?championId=
    interchangeably. Unparseable values are reported like any other
    request validation error.
    """
    key = name.lower()

    def _dependency(request: Request) -> Optional[int]:
        for param, raw in request.query_params.multi_items():
            if param.lower() != key:
                continue
            try:
                return int(raw)
            except ValueError:
                raise RequestValidationError([{
                    "type": "int_parsing",
                    "loc": ("query", name),
                    "msg": "Input should be a valid integer, unable to parse string as an integer",
                    "input": raw,
                }])
        return default

    return _dependency


def _check_text(text: Optional[str]):
    if not text or len(text) < MIN_TEXT_LENGTH:
        raise HTTPException(status_code=400, detail=f"Review length must be at least {MIN_TEXT_LENGTH} characters")


def _check_rating(rating: int):
    if rating > MAX_RATING or rating < MIN_RATING:
        raise HTTPException(
            status_code=400,
            detail=f"Rating can only contain numbers in the range of {MIN_RATING} to {MAX_RATING}",
        )


@router.get("", response_model=list[ReviewResponse])
def get_reviews(session: Session = Depends(get_session)):
    """All reviews ordered by id"""
    return ReviewService(session).list_reviews()


@router.get("/id/{review_id}", response_model=ReviewResponse)
def get_review_by_id(review_id: int, session: Session = Depends(get_session)):
    reviews = ReviewService(session)
    if not reviews.review_exists(review_id):
        raise HTTPException(status_code=404, detail="Review not found")

    return reviews.get_review_by_id(review_id)


@router.get("/review/champion/id/{champion_id}", response_model=list[ReviewResponse])
def get_reviews_by_champion(champion_id: int, session: Session = Depends(get_session)):
    reviews = ReviewService(session).get_champion_reviews(champion_id)
    if len(reviews) == 0:
        raise HTTPException(status_code=404, detail="No reviews found for this champion")

    return reviews


@router.get("/{username}/reviews/", response_model=list[ReviewView])
def get_reviews_by_user(username: str, session: Session = Depends(get_session)):
    """Reviews written by a user. A user without reviews gets an empty list."""
    if not UserService(session).user_exists(username):
        raise HTTPException(status_code=404, detail="The username does not exist")

    return ReviewService(session).get_reviews_by_username(username)


@router.get("/review/champion/name/{name}", response_model=list[ReviewResponse])
def get_champion_reviews_by_name(name: str, session: Session = Depends(get_session)):
    if not ChampionService(session).champion_name_exists(name):
        raise HTTPException(status_code=400, detail="The champion does not exist")

    reviews = ReviewService(session)
    if not reviews.champion_has_reviews(name):
        raise HTTPException(status_code=404, detail="No reviews found for this champion")

    return reviews.get_champion_reviews_by_name(name)


@router.get("/view/id/{review_id}", response_model=ReviewView)
def get_review_view(review_id: int, session: Session = Depends(get_session)):
    """Review with username and champion name instead of foreign keys.

    Unknown ids answer 400, unlike /id/{review_id}.
    """
    reviews = ReviewService(session)
    if not reviews.review_exists(review_id):
        raise HTTPException(status_code=400, detail="Review not found")

    return reviews.get_review_view(review_id)


@router.post("", status_code=204)
def create_review(
    review: ReviewCreate,
    current_user: dict = Depends(require_user_allowed),
    rating: int = Depends(query_int("Rating", 0)),
    champion_id: int = Depends(query_int("ChampionId", 0)),
    session: Session = Depends(get_session),
):
    """Create a review for a champion id (authenticated users only)"""
    _check_text(review.text)
    _check_rating(rating)

    if not ChampionService(session).champion_id_exists(champion_id):
        raise HTTPException(status_code=400, detail="The champion you're trying to review does not exist")

    outcome = ReviewService(session).create_review(rating, champion_id, review, current_user["id"])
    if outcome != ReviewOutcome.SUCCESS:
        raise HTTPException(status_code=500, detail=CREATE_FAILED)

    return None


@router.post("/post/{champion_name}")
def create_review_with_champion_name(
    champion_name: str,
    review: ReviewCreate,
    current_user: dict = Depends(require_user_allowed),
    rating: int = Depends(query_int("rating", 0)),
    session: Session = Depends(get_session),
):
    """Create a review for a champion looked up by name (authenticated users only)"""
    _check_text(review.text)
    _check_rating(rating)

    if not ChampionService(session).champion_name_exists(champion_name):
        raise HTTPException(status_code=400, detail="The champion you're trying to review does not exist")

    outcome = ReviewService(session).create_review_with_champion_name(
        rating, champion_name, review, current_user["id"]
    )
    if outcome != ReviewOutcome.SUCCESS:
        raise HTTPException(status_code=500, detail=CREATE_FAILED)

    return "Review added"


@router.patch("/{review_id}")
def update_review(
    review_id: int,
    updated: ReviewUpdate,
    current_user: dict = Depends(require_user_allowed),
    new_rating: Optional[int] = Depends(query_int("NewRating")),
    session: Session = Depends(get_session),
):
    """Edit a review (owner only).

    Omitted NewRating keeps the stored rating; omitted title keeps the stored title.
    """
    if review_id == 0:
        raise HTTPException(status_code=400, detail="Please provide a review id")

    reviews = ReviewService(session)
    existing = reviews.get_review_by_id(review_id)
    if existing is None:
        raise HTTPException(status_code=404, detail=f"The review {review_id} does not exist")

    _check_text(updated.text)

    if new_rating is None:
        new_rating = existing.rating
    else:
        _check_rating(new_rating)

    # text is mandatory on edits (checked above); only the title may be omitted
    merged = ReviewUpdate(
        title=updated.title if updated.title is not None else existing.title,
        text=updated.text,
    )

    outcome = reviews.update_review(review_id, new_rating, merged, current_user["id"])
    if outcome != ReviewOutcome.SUCCESS:
        raise HTTPException(status_code=500, detail=UPDATE_FAILED)

    return "Review updated correctly"


@router.delete("/id/{review_id}", status_code=204)
def delete_review(
    review_id: int,
    current_user: dict = Depends(require_user_allowed),
    session: Session = Depends(get_session),
):
    """Delete a review (owner only)"""
    reviews = ReviewService(session)
    if not reviews.review_exists(review_id):
        raise HTTPException(status_code=404, detail="Review not found")

    outcome = reviews.delete_review(review_id, current_user["id"])
    if outcome == ReviewOutcome.NOT_FOUND:
        raise HTTPException(status_code=404, detail="Review not found")
    if outcome != ReviewOutcome.SUCCESS:
        raise HTTPException(status_code=500, detail=DELETE_FAILED)

    return None
