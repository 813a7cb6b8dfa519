"""Review business rules.

Creation, edits and deletion of champion reviews, with ownership checks
performed before anything is written. The acting user id is passed in
explicitly by the caller (resolved from the bearer token by services.auth).
Every mutation issues exactly one commit.
"""
import logging
from enum import Enum
from typing import List, Optional

from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from database_adapter import Champion, Review, User, utcnow_naive
from models.reviews import ReviewBase, ReviewView
from services.security_logger import log_unauthorized_access

logger = logging.getLogger(__name__)

MIN_TEXT_LENGTH = 16
MIN_RATING = 0
MAX_RATING = 5
TITLE_SUFFIX = "..."


class ReviewOutcome(str, Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    PERSISTENCE_ERROR = "persistence_error"


def derive_title(text: str) -> str:
    """
    Build a title from the first 16 characters of the review text.

    Raises ValueError for shorter text; callers validate length first.
    """
    if text is None or len(text) < MIN_TEXT_LENGTH:
        raise ValueError(f"Cannot derive a title from text shorter than {MIN_TEXT_LENGTH} characters")
    return text[:MIN_TEXT_LENGTH] + TITLE_SUFFIX


class ReviewService:
    """Review operations bound to a single SQLAlchemy session."""

    def __init__(self, session: Session):
        self.session = session
        self._flushed_rows = 0
        event.listen(session, "after_flush", self._count_flushed)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_reviews(self) -> List[Review]:
        return self.session.query(Review).order_by(Review.id).all()

    def get_review_by_id(self, review_id: int) -> Optional[Review]:
        return self.session.query(Review).filter(Review.id == review_id).first()

    def review_exists(self, review_id: int) -> bool:
        return self.session.get(Review, review_id) is not None

    def get_champion_reviews(self, champion_id: int) -> List[Review]:
        return self.session.query(Review).filter(Review.champion_id == champion_id).all()

    def get_reviews_by_username(self, username: str) -> List[ReviewView]:
        rows = self._view_query().filter(User.username == username).all()
        return [self._to_view(*row) for row in rows]

    def champion_has_reviews(self, name: str) -> bool:
        return self._champion_name_query(name).first() is not None

    def get_champion_reviews_by_name(self, name: str) -> List[Review]:
        return self._champion_name_query(name).all()

    def get_review_view(self, review_id: int) -> Optional[ReviewView]:
        row = self._view_query().filter(Review.id == review_id).first()
        if row is None:
            return None
        return self._to_view(*row)

    def _champion_name_query(self, name: str):
        return (
            self.session.query(Review)
            .join(Champion, Review.champion_id == Champion.id)
            .filter(Champion.name == name)
        )

    def _view_query(self):
        return (
            self.session.query(Review, User.username, Champion.name)
            .join(User, Review.user_id == User.id)
            .join(Champion, Review.champion_id == Champion.id)
        )

    @staticmethod
    def _to_view(review: Review, username: str, champion_name: str) -> ReviewView:
        return ReviewView(
            id=review.id,
            rating=review.rating,
            title=review.title,
            text=review.text,
            created=review.created,
            username=username,
            champion_name=champion_name,
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_review(self, rating: int, champion_id: int, review: ReviewBase, user_id: int) -> ReviewOutcome:
        """Insert a review owned by user_id. Rating and text are validated by the caller."""
        title = review.title if review.title else derive_title(review.text)

        self.session.add(Review(
            rating=rating,
            user_id=user_id,
            champion_id=champion_id,
            title=title,
            text=review.text,
            created=utcnow_naive(),
        ))

        if not self.persist():
            return ReviewOutcome.PERSISTENCE_ERROR

        logger.info(f"User {user_id} reviewed champion {champion_id} (rating {rating})")
        return ReviewOutcome.SUCCESS

    def create_review_with_champion_name(
        self, rating: int, champion_name: str, review: ReviewBase, user_id: int
    ) -> ReviewOutcome:
        champion = self.session.query(Champion).filter(Champion.name == champion_name).first()
        if champion is None:
            return ReviewOutcome.NOT_FOUND
        return self.create_review(rating, champion.id, review, user_id)

    def update_review(self, review_id: int, new_rating: int, updated: ReviewBase, user_id: int) -> ReviewOutcome:
        """
        Overwrite rating, title and text of an owned review.

        The caller merges omitted fields with the stored values beforehand,
        so all three are applied as given.
        """
        existing = self.session.get(Review, review_id)
        if existing is None:
            return ReviewOutcome.NOT_FOUND

        if not self.compare_ownership(review_id, user_id):
            log_unauthorized_access(user_id, f"review:{review_id}", "update by non-owner")
            return ReviewOutcome.FORBIDDEN

        existing.rating = new_rating
        existing.title = updated.title
        existing.text = updated.text

        if not self.persist():
            return ReviewOutcome.PERSISTENCE_ERROR

        logger.info(f"User {user_id} updated review {review_id}")
        return ReviewOutcome.SUCCESS

    def delete_review(self, review_id: int, user_id: int) -> ReviewOutcome:
        existing = self.session.get(Review, review_id)
        if existing is None:
            return ReviewOutcome.NOT_FOUND

        if not self.compare_ownership(review_id, user_id):
            log_unauthorized_access(user_id, f"review:{review_id}", "delete by non-owner")
            return ReviewOutcome.FORBIDDEN

        self.session.delete(existing)

        if not self.persist():
            return ReviewOutcome.PERSISTENCE_ERROR

        logger.info(f"User {user_id} deleted review {review_id}")
        return ReviewOutcome.SUCCESS

    def compare_ownership(self, review_id: int, user_id: int) -> bool:
        """True when the review exists and belongs to user_id."""
        review = self.session.get(Review, review_id)
        if review is None:
            return False
        return review.user_id == user_id

    def _count_flushed(self, session, flush_context):
        # new/dirty/deleted still hold the pre-flush state inside after_flush
        self._flushed_rows += len(session.new) + len(session.dirty) + len(session.deleted)

    def persist(self) -> bool:
        """Commit pending changes. True if at least one row was written and the commit went through."""
        # Rows are counted as they are flushed, so changes already sent by an
        # autoflush (any query after a mutation) still count here.
        try:
            self.session.flush()
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            self._flushed_rows = 0
            logger.error(f"Failed to commit review changes: {e}")
            return False

        rows, self._flushed_rows = self._flushed_rows, 0
        return rows > 0
