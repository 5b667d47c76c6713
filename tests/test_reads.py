"""Read helpers and document mapping."""

from datetime import datetime, timezone

import pytest
from bson import ObjectId

from errors import InvalidArgument, RestaurantNotFound
from restaurants import (
    add_fake_restaurants_and_reviews,
    get_restaurant_by_id,
    get_restaurants,
    get_reviews_by_restaurant_id,
    to_datetime,
    to_record,
    update_restaurant_image_reference,
)


@pytest.fixture()
def listing(make_restaurant):
    return {
        "tandoor": make_restaurant(name="Tandoor", category="Indian", city="Austin", price=2,
                                   numRatings=10, sumRating=40, avgRating=4.0),
        "curry": make_restaurant(name="Curry House", category="Indian", city="Denver", price=1,
                                 numRatings=30, sumRating=105, avgRating=3.5),
        "slice": make_restaurant(name="Slice", category="Pizza", city="Austin", price=2,
                                 numRatings=5, sumRating=24, avgRating=4.8),
    }


class TestGetRestaurants:
    def test_default_sort_is_rating(self, db, listing):
        names = [r["name"] for r in get_restaurants(db)]
        assert names == ["Slice", "Tandoor", "Curry House"]

    def test_review_sort(self, db, listing):
        names = [r["name"] for r in get_restaurants(db, {"sort": "Review"})]
        assert names == ["Curry House", "Tandoor", "Slice"]

    def test_filters(self, db, listing):
        results = get_restaurants(db, {"category": "Indian", "price": "$$"})
        assert [r["id"] for r in results] == [listing["tandoor"]]

    def test_records_are_mapped(self, db, listing):
        record = get_restaurants(db, {"city": "Denver"})[0]
        assert record["id"] == listing["curry"]
        assert "_id" not in record
        assert isinstance(record["timestamp"], datetime)


class TestGetRestaurantById:
    def test_found(self, db, restaurant_id):
        record = get_restaurant_by_id(db, restaurant_id)
        assert record["id"] == restaurant_id
        assert record["name"] == "Bombay Brasserie"

    def test_missing_document_returns_none(self, db):
        assert get_restaurant_by_id(db, str(ObjectId())) is None

    @pytest.mark.parametrize("restaurant_id", ["", None, "xyz"])
    def test_invalid_id_raises(self, db, restaurant_id):
        with pytest.raises(InvalidArgument):
            get_restaurant_by_id(db, restaurant_id)
        assert db.store.calls == []


class TestGetReviews:
    def test_most_recent_first(self, db, restaurant_id, make_review):
        make_review(restaurant_id, 3, minutes_ago=90, text="first")
        make_review(restaurant_id, 5, minutes_ago=10, text="second")
        make_review(str(ObjectId()), 1, minutes_ago=5, text="elsewhere")

        texts = [r["text"] for r in get_reviews_by_restaurant_id(db, restaurant_id)]
        assert texts == ["second", "first"]

    def test_invalid_id_raises(self, db):
        with pytest.raises(InvalidArgument):
            get_reviews_by_restaurant_id(db, "")


class TestUpdateImageReference:
    def test_replaces_photo(self, db, restaurant_id):
        update_restaurant_image_reference(db, restaurant_id, "https://cdn.example.com/new.png")
        assert get_restaurant_by_id(db, restaurant_id)["photo"] == "https://cdn.example.com/new.png"

    def test_unknown_restaurant(self, db):
        with pytest.raises(RestaurantNotFound):
            update_restaurant_image_reference(db, str(ObjectId()), "https://cdn.example.com/x.png")


class TestMapping:
    def test_naive_datetime_is_utc(self):
        assert to_datetime(datetime(2024, 1, 1)) == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_epoch_seconds(self):
        assert to_datetime(0) == datetime(1970, 1, 1, tzinfo=timezone.utc)

    def test_missing_timestamp(self):
        record = to_record({"_id": ObjectId(), "name": "x"})
        assert record["timestamp"] is None


def test_seeding_keeps_aggregates_consistent(db):
    ids = add_fake_restaurants_and_reviews(db, count=5, seed=42)

    assert len(ids) == 5
    for restaurant_id in ids:
        restaurant = get_restaurant_by_id(db, restaurant_id)
        reviews = get_reviews_by_restaurant_id(db, restaurant_id)
        assert restaurant["numRatings"] == len(reviews)
        assert restaurant["sumRating"] == sum(r["rating"] for r in reviews)
