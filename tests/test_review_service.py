"""Test ReviewService business rules directly against a session"""
import pytest
from sqlalchemy.exc import SQLAlchemyError

from database_adapter import Review
from models.reviews import ReviewCreate, ReviewUpdate
from services.reviews import ReviewOutcome, ReviewService, derive_title
from .test_data import SHORT_REVIEW_TEXT, UPDATED_REVIEW_TEXT, VALID_REVIEW_TEXT


@pytest.fixture
def session(clean_database):
    with clean_database.session() as session:
        yield session


@pytest.fixture
def service(session):
    return ReviewService(session)


def test_derive_title_uses_first_sixteen_characters():
    assert derive_title(VALID_REVIEW_TEXT) == "This champion is..."
    assert derive_title("x" * 16) == "x" * 16 + "..."


def test_derive_title_rejects_short_text():
    with pytest.raises(ValueError):
        derive_title(SHORT_REVIEW_TEXT)


def test_create_review_derives_missing_title(service, session, test_user, test_champion):
    outcome = service.create_review(4, test_champion["id"], ReviewCreate(text=VALID_REVIEW_TEXT), test_user["id"])

    assert outcome == ReviewOutcome.SUCCESS
    stored = session.query(Review).one()
    assert stored.title.endswith("...")
    assert stored.title == VALID_REVIEW_TEXT[:16] + "..."
    assert stored.user_id == test_user["id"]
    assert stored.created is not None


def test_create_review_treats_empty_title_as_missing(service, session, test_user, test_champion):
    service.create_review(3, test_champion["id"], ReviewCreate(title="", text=VALID_REVIEW_TEXT), test_user["id"])
    assert session.query(Review).one().title == "This champion is..."


def test_create_review_with_unknown_champion_name(service, session, test_user):
    review = ReviewCreate(text=VALID_REVIEW_TEXT)
    outcome = service.create_review_with_champion_name(3, "Nobody", review, test_user["id"])

    assert outcome == ReviewOutcome.NOT_FOUND
    assert session.query(Review).count() == 0


def test_list_reviews_is_ordered_and_repeatable(service, test_user, test_champion):
    for rating in (2, 5, 0):
        service.create_review(rating, test_champion["id"], ReviewCreate(text=VALID_REVIEW_TEXT), test_user["id"])

    first = [review.id for review in service.list_reviews()]
    second = [review.id for review in service.list_reviews()]
    assert first == sorted(first)
    assert first == second


def test_compare_ownership(service, test_review, test_user, test_user_2):
    assert service.compare_ownership(test_review["id"], test_user["id"]) is True
    assert service.compare_ownership(test_review["id"], test_user_2["id"]) is False
    assert service.compare_ownership(9999, test_user["id"]) is False


def test_update_review_by_owner(service, session, test_review, test_user):
    updated = ReviewUpdate(title="New title", text=UPDATED_REVIEW_TEXT)
    outcome = service.update_review(test_review["id"], 1, updated, test_user["id"])

    assert outcome == ReviewOutcome.SUCCESS
    stored = session.get(Review, test_review["id"])
    assert (stored.rating, stored.title, stored.text) == (1, "New title", UPDATED_REVIEW_TEXT)


def test_update_review_with_unchanged_values_succeeds(service, test_review, test_user):
    same = ReviewUpdate(title=test_review["title"], text=test_review["text"])
    outcome = service.update_review(test_review["id"], test_review["rating"], same, test_user["id"])
    assert outcome == ReviewOutcome.SUCCESS


def test_update_review_by_non_owner_is_forbidden(service, clean_database, test_review, test_user_2):
    updated = ReviewUpdate(title="Hacked", text=UPDATED_REVIEW_TEXT)
    outcome = service.update_review(test_review["id"], 0, updated, test_user_2["id"])

    assert outcome == ReviewOutcome.FORBIDDEN
    with clean_database.session() as other:
        stored = other.get(Review, test_review["id"])
        assert stored.title == test_review["title"]
        assert stored.rating == test_review["rating"]


def test_update_missing_review(service, test_user):
    updated = ReviewUpdate(title="t", text=UPDATED_REVIEW_TEXT)
    assert service.update_review(9999, 3, updated, test_user["id"]) == ReviewOutcome.NOT_FOUND


def test_delete_review(service, session, test_review, test_user, test_user_2):
    assert service.delete_review(test_review["id"], test_user_2["id"]) == ReviewOutcome.FORBIDDEN
    assert service.review_exists(test_review["id"])

    assert service.delete_review(test_review["id"], test_user["id"]) == ReviewOutcome.SUCCESS
    assert not service.review_exists(test_review["id"])

    assert service.delete_review(test_review["id"], test_user["id"]) == ReviewOutcome.NOT_FOUND


def test_persist_without_changes_reports_failure(service):
    assert service.persist() is False


def test_reviews_by_username_are_views(service, test_review):
    views = service.get_reviews_by_username("testuser")
    assert len(views) == 1
    assert views[0].champion_name == "Ahri"
    assert views[0].username == "testuser"
    assert service.get_reviews_by_username("testuser2") == []


def test_champion_name_lookups(service, test_review):
    assert service.champion_has_reviews("Ahri") is True
    assert service.champion_has_reviews("Teemo") is False
    assert [review.id for review in service.get_champion_reviews_by_name("Ahri")] == [test_review["id"]]


def test_get_review_view_missing(service):
    assert service.get_review_view(9999) is None


def test_persist_counts_rows_already_autoflushed(service, session, test_user, test_champion):
    session.add(Review(
        rating=3,
        title="Autoflushed",
        text=VALID_REVIEW_TEXT,
        user_id=test_user["id"],
        champion_id=test_champion["id"],
    ))
    # querying flushes the pending insert before persist() runs
    assert session.query(Review).count() == 1
    assert not session.new

    assert service.persist() is True


def test_commit_failure_rolls_back_and_keeps_session_usable(service, session, monkeypatch, test_user, test_champion):
    def _commit():
        raise SQLAlchemyError("database is unavailable")
    monkeypatch.setattr(session, "commit", _commit)

    outcome = service.create_review(4, test_champion["id"], ReviewCreate(text=VALID_REVIEW_TEXT), test_user["id"])
    assert outcome == ReviewOutcome.PERSISTENCE_ERROR

    monkeypatch.undo()
    assert session.query(Review).count() == 0
    assert service.create_review(
        2, test_champion["id"], ReviewCreate(text=VALID_REVIEW_TEXT), test_user["id"]
    ) == ReviewOutcome.SUCCESS
    assert session.query(Review).count() == 1


def test_update_commit_failure_keeps_stored_review(service, session, monkeypatch, test_review, test_user):
    def _commit():
        raise SQLAlchemyError("database is unavailable")
    monkeypatch.setattr(session, "commit", _commit)

    updated = ReviewUpdate(title="Lost edit", text=UPDATED_REVIEW_TEXT)
    assert service.update_review(test_review["id"], 0, updated, test_user["id"]) == ReviewOutcome.PERSISTENCE_ERROR

    monkeypatch.undo()
    stored = session.get(Review, test_review["id"])
    assert (stored.title, stored.rating) == (test_review["title"], test_review["rating"])
