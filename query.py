"""
Query composer for the restaurants collection.

A ``RestaurantQuery`` is an immutable description of a read: equality
predicates plus ordering. Nothing is executed here; callers hand the
rendered filter/sort to pymongo.
"""
from dataclasses import dataclass, replace
from functools import reduce
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from pymongo import DESCENDING

from database import RESTAURANTS

SORT_BY_RATING = "Rating"
SORT_BY_REVIEW = "Review"


@dataclass(frozen=True)
class RestaurantQuery:
    collection: str = RESTAURANTS
    filters: Tuple[Tuple[str, Any], ...] = ()
    ordering: Tuple[Tuple[str, int], ...] = ()

    def where(self, field: str, value: Any) -> "RestaurantQuery":
        return replace(self, filters=self.filters + ((field, value),))

    def order_by(self, field: str, direction: int = DESCENDING) -> "RestaurantQuery":
        return replace(self, ordering=self.ordering + ((field, direction),))

    def filter_document(self) -> Dict[str, Any]:
        return {field: value for field, value in self.filters}

    def sort_spec(self) -> List[Tuple[str, int]]:
        return list(self.ordering)


def price_tier(price: Union[int, str]) -> int:
    """Stored prices are integer tiers; "$$" style symbols count their length."""
    if isinstance(price, str):
        if price.strip().isdigit():
            return int(price)
        return len(price)
    return int(price)


Step = Callable[[RestaurantQuery, Mapping[str, Any]], RestaurantQuery]


def _by_category(q: RestaurantQuery, options: Mapping[str, Any]) -> RestaurantQuery:
    category = options.get("category")
    return q.where("category", category) if category else q


def _by_city(q: RestaurantQuery, options: Mapping[str, Any]) -> RestaurantQuery:
    city = options.get("city")
    return q.where("city", city) if city else q


def _by_price(q: RestaurantQuery, options: Mapping[str, Any]) -> RestaurantQuery:
    price = options.get("price")
    return q.where("price", price_tier(price)) if price else q


def _sorted(q: RestaurantQuery, options: Mapping[str, Any]) -> RestaurantQuery:
    # Unknown sort values fall back to rating order
    if options.get("sort") == SORT_BY_REVIEW:
        return q.order_by("numRatings", DESCENDING)
    return q.order_by("avgRating", DESCENDING)


STEPS: Tuple[Step, ...] = (_by_category, _by_city, _by_price, _sorted)


def _as_options(filters: Any) -> Mapping[str, Any]:
    if filters is None:
        return {}
    if hasattr(filters, "model_dump"):
        return filters.model_dump(exclude_none=True)
    return filters


def apply_query_filters(query: RestaurantQuery, filters: Optional[Any] = None) -> RestaurantQuery:
    options = _as_options(filters)
    return reduce(lambda q, step: step(q, options), STEPS, query)
