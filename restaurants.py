"""
Data access for restaurants and their ratings.

Every function takes the MongoDB ``Database`` as its first argument. Reads
map documents to plain dicts (``_id`` becomes a string ``id`` and
``timestamp`` an aware ``datetime``). The only write with real logic is
``add_review_to_restaurant``, which updates the rating aggregates and inserts
the review inside a single transaction.
"""
import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import DESCENDING
from pymongo.database import Database
from pymongo.errors import PyMongoError

from database import RATINGS, RESTAURANTS
from errors import InvalidArgument, RestaurantNotFound
from fake_restaurants import generate_fake_restaurants_and_reviews
from logging_config import get_logger
from query import RestaurantQuery, apply_query_filters

logger = get_logger(__name__)

# Fields the transaction assigns itself; callers cannot override them
_SERVER_FIELDS = ("_id", "id", "restaurantId", "timestamp")


def restaurant_oid(restaurant_id: Any) -> ObjectId:
    if isinstance(restaurant_id, ObjectId):
        return restaurant_id
    if not restaurant_id:
        logger.warning("invalid_restaurant_id", restaurant_id=restaurant_id)
        raise InvalidArgument("No restaurant ID has been provided.")
    try:
        return ObjectId(str(restaurant_id))
    except InvalidId:
        logger.warning("invalid_restaurant_id", restaurant_id=restaurant_id)
        raise InvalidArgument(f"Invalid restaurant ID: {restaurant_id!r}") from None


def to_datetime(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        # pymongo hands back naive UTC unless the client is tz_aware
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    return datetime.fromisoformat(str(value))


def to_record(doc: Mapping[str, Any]) -> Dict[str, Any]:
    record = {k: v for k, v in doc.items() if k != "_id"}
    record["id"] = str(doc["_id"])
    record["timestamp"] = to_datetime(doc.get("timestamp"))
    return record


def restaurants_query(filters: Optional[Any] = None) -> RestaurantQuery:
    return apply_query_filters(RestaurantQuery(), filters)


def reviews_query(restaurant_id: Any) -> RestaurantQuery:
    oid = restaurant_oid(restaurant_id)
    return (
        RestaurantQuery(collection=RATINGS)
        .where("restaurantId", str(oid))
        .order_by("timestamp", DESCENDING)
    )


def run_query(db: Database, query: RestaurantQuery) -> List[Dict[str, Any]]:
    cursor = db[query.collection].find(query.filter_document())
    sort = query.sort_spec()
    if sort:
        cursor = cursor.sort(sort)
    return [to_record(doc) for doc in cursor]


def get_restaurants(db: Database, filters: Optional[Any] = None) -> List[Dict[str, Any]]:
    return run_query(db, restaurants_query(filters))


def get_restaurant_by_id(db: Database, restaurant_id: Any) -> Optional[Dict[str, Any]]:
    oid = restaurant_oid(restaurant_id)
    doc = db[RESTAURANTS].find_one({"_id": oid})
    if doc is None:
        logger.warning("restaurant_not_found", restaurant_id=str(oid))
        return None
    return to_record(doc)


def get_reviews_by_restaurant_id(db: Database, restaurant_id: Any) -> List[Dict[str, Any]]:
    """Reviews for one restaurant, most recent first."""
    return run_query(db, reviews_query(restaurant_id))


def update_restaurant_image_reference(db: Database, restaurant_id: Any, public_image_url: str) -> None:
    oid = restaurant_oid(restaurant_id)
    result = db[RESTAURANTS].update_one({"_id": oid}, {"$set": {"photo": str(public_image_url)}})
    if result.matched_count == 0:
        raise RestaurantNotFound(str(oid))


def _rating_value(review: Mapping[str, Any]):
    rating = review.get("rating")
    if isinstance(rating, bool) or rating is None:
        raise InvalidArgument("A review needs a numeric rating.")
    if not isinstance(rating, (int, float)):
        try:
            rating = float(rating)
        except (TypeError, ValueError):
            raise InvalidArgument(f"A review needs a numeric rating, got {rating!r}.") from None
    # avgRating == sumRating / numRatings only holds for finite ratings
    if not math.isfinite(rating):
        raise InvalidArgument(f"A review needs a finite rating, got {rating!r}.")
    return rating


def compute_rating_update(snapshot: Optional[Mapping[str, Any]], rating) -> Dict[str, Any]:
    """New aggregate fields for a restaurant snapshot after one more rating.

    Depends only on its inputs, so a retried transaction recomputes the same
    result from whatever snapshot the retry reads.
    """
    data = snapshot or {}
    num_ratings = (data.get("numRatings") or 0) + 1
    sum_rating = (data.get("sumRating") or 0) + rating
    return {
        "numRatings": num_ratings,
        "sumRating": sum_rating,
        "avgRating": sum_rating / num_ratings,
    }


def _update_with_rating(session, db: Database, oid: ObjectId, review_oid: ObjectId, review: Dict[str, Any]) -> None:
    restaurants = db[RESTAURANTS]
    restaurant = restaurants.find_one({"_id": oid}, session=session)
    if restaurant is None:
        raise RestaurantNotFound(str(oid))

    restaurants.update_one(
        {"_id": oid},
        {"$set": compute_rating_update(restaurant, _rating_value(review))},
        session=session,
    )

    payload = {k: v for k, v in review.items() if k not in _SERVER_FIELDS}
    payload["restaurantId"] = str(oid)
    # $currentDate stamps the review with the server clock at commit time
    db[RATINGS].update_one(
        {"_id": review_oid},
        {"$setOnInsert": payload, "$currentDate": {"timestamp": True}},
        upsert=True,
        session=session,
    )


def add_review_to_restaurant(db: Database, restaurant_id: Any, review: Any) -> None:
    if not restaurant_id:
        raise InvalidArgument("No restaurant ID has been provided.")
    if not review:
        raise InvalidArgument("A valid review has not been provided.")

    oid = restaurant_oid(restaurant_id)
    if hasattr(review, "model_dump"):
        review = review.model_dump(exclude_none=True)
    review = dict(review)
    _rating_value(review)

    # Allocated once so every retry of the callback writes the same review
    review_oid = ObjectId()

    try:
        with db.client.start_session() as session:
            session.with_transaction(
                lambda s: _update_with_rating(s, db, oid, review_oid, review)
            )
    except Exception:
        logger.exception("add_review_failed", restaurant_id=str(oid))
        raise

    logger.info("review_added", restaurant_id=str(oid), review_id=str(review_oid))


def add_fake_restaurants_and_reviews(db: Database, count: int = 20, seed: Optional[int] = None) -> List[str]:
    inserted = []
    for item in generate_fake_restaurants_and_reviews(count, seed=seed):
        try:
            result = db[RESTAURANTS].insert_one(item["restaurant"])
            restaurant_id = str(result.inserted_id)
            for rating in item["ratings"]:
                db[RATINGS].insert_one({**rating, "restaurantId": restaurant_id})
            inserted.append(restaurant_id)
        except PyMongoError:
            logger.exception("seed_restaurant_failed", name=item["restaurant"].get("name"))
    logger.info("seed_complete", inserted=len(inserted))
    return inserted
