from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone

from faker import Faker


CATEGORIES = [
    "Brunch", "Burgers", "Coffee", "Deli", "Dim Sum", "Indian", "Italian",
    "Mediterranean", "Mexican", "Pizza", "Ramen", "Sushi",
]
CITIES = [
    "Albuquerque", "Arlington", "Atlanta", "Austin", "Boston", "Charlotte",
    "Chicago", "Denver", "Los Angeles", "New York", "San Francisco", "Seattle",
]
REVIEW_TEXT = {
    1: ["Would never eat here again!", "Cold food and a long wait."],
    2: ["Not my cup of tea.", "Could be better."],
    3: ["Exactly okay :/", "Nothing special, nothing wrong."],
    4: ["Actually pretty good, would recommend!", "Solid spot, friendly staff."],
    5: ["This is my favorite place. Literally.", "Best meal I've had all year."],
}


def _photo_url(category: str, n: int) -> str:
    slug = category.lower().replace(" ", "-")
    return f"https://storage.googleapis.com/restaurant-photos/{slug}_{n}.png"


def _ratings(rng: random.Random, fake: Faker, created: datetime, max_ratings: int = 5) -> list[dict]:
    ratings = []
    for _ in range(rng.randint(0, max_ratings)):
        stars = rng.randint(1, 5)
        ratings.append(
            {
                "rating": stars,
                "text": rng.choice(REVIEW_TEXT[stars]),
                "userName": fake.name(),
                "userId": fake.uuid4(),
                "timestamp": created + timedelta(hours=rng.randint(1, 24 * 30)),
            }
        )
    return ratings


def generate_fake_restaurants_and_reviews(count: int = 20, seed: int | None = None) -> list[dict]:
    """Restaurant payloads paired with their ratings.

    Aggregates on each restaurant are derived from its own ratings, so seeded
    data satisfies numRatings/sumRating/avgRating consistency.
    """
    rng = random.Random(seed)
    fake = Faker()
    if seed is not None:
        fake.seed_instance(seed)
    now = datetime.now(timezone.utc)
    items = []
    for _ in range(count):
        category = rng.choice(CATEGORIES)
        created = now - timedelta(days=rng.randint(30, 365))
        ratings = _ratings(rng, fake, created)
        num_ratings = len(ratings)
        sum_rating = sum(r["rating"] for r in ratings)
        items.append(
            {
                "restaurant": {
                    "name": f"{fake.last_name()}'s {category}",
                    "category": category,
                    "city": rng.choice(CITIES),
                    "price": rng.randint(1, 4),
                    "photo": _photo_url(category, rng.randint(1, 22)),
                    "numRatings": num_ratings,
                    "sumRating": sum_rating,
                    "avgRating": sum_rating / num_ratings if num_ratings else 0,
                    "timestamp": created,
                },
                "ratings": ratings,
            }
        )
    return items
