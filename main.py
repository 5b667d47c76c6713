from functools import lru_cache
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.database import Database

from config import get_settings
from database import RESTAURANTS, connect, ensure_indexes
from errors import InvalidArgument, RestaurantNotFound
from logging_config import configure_logging, get_logger
from restaurants import (
    add_fake_restaurants_and_reviews,
    add_review_to_restaurant,
    get_restaurant_by_id,
    get_restaurants,
    get_reviews_by_restaurant_id,
    update_restaurant_image_reference,
)
from schemas import PhotoUpdate, Restaurant, RestaurantDetail, RestaurantFilters, Review, ReviewCreate

settings = get_settings()
configure_logging(settings.log_level)
logger = get_logger(__name__)

app = FastAPI(title="Restaurant Ratings API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@lru_cache(maxsize=1)
def _database() -> Database:
    db = connect(settings)
    ensure_indexes(db)
    return db


def get_db() -> Database:
    return _database()


@app.exception_handler(InvalidArgument)
def invalid_argument_handler(request: Request, exc: InvalidArgument):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(RestaurantNotFound)
def not_found_handler(request: Request, exc: RestaurantNotFound):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.get("/")
def root():
    return {"message": "Restaurant Ratings API running"}


# Seed demo data if empty
@app.post("/api/seed")
def seed_demo(count: Optional[int] = None, db: Database = Depends(get_db)):
    if db[RESTAURANTS].count_documents({}) > 0:
        return {"status": "ok", "message": "Already seeded"}
    ids = add_fake_restaurants_and_reviews(db, count or settings.seed_count)
    return {"status": "ok", "inserted": ids}


@app.get("/api/restaurants", response_model=list[Restaurant])
def list_restaurants(
    category: Optional[str] = None,
    city: Optional[str] = None,
    price: Optional[str] = None,
    sort: Optional[str] = None,
    db: Database = Depends(get_db),
):
    filters = RestaurantFilters(category=category, city=city, price=price, sort=sort)
    return get_restaurants(db, filters)


@app.get("/api/restaurants/{restaurant_id}", response_model=RestaurantDetail)
def get_restaurant(restaurant_id: str, db: Database = Depends(get_db)):
    doc = get_restaurant_by_id(db, restaurant_id)
    if not doc:
        raise HTTPException(404, "Restaurant not found")
    return {"restaurant": doc, "reviews": get_reviews_by_restaurant_id(db, restaurant_id)}


@app.get("/api/restaurants/{restaurant_id}/reviews", response_model=list[Review])
def list_reviews(restaurant_id: str, db: Database = Depends(get_db)):
    return get_reviews_by_restaurant_id(db, restaurant_id)


# Create a review and update restaurant aggregates
@app.post("/api/restaurants/{restaurant_id}/reviews", status_code=201, response_model=Restaurant)
def add_review(restaurant_id: str, body: ReviewCreate, db: Database = Depends(get_db)):
    add_review_to_restaurant(db, restaurant_id, body)
    return get_restaurant_by_id(db, restaurant_id)


@app.put("/api/restaurants/{restaurant_id}/photo")
def update_photo(restaurant_id: str, body: PhotoUpdate, db: Database = Depends(get_db)):
    update_restaurant_image_reference(db, restaurant_id, str(body.photo))
    return {"status": "ok", "photo": str(body.photo)}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
