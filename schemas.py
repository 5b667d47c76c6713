"""
Document schemas for the restaurants data layer

Field names are the stored MongoDB field names. Reviews live in the
``ratings`` collection and point back to their restaurant by ``restaurantId``.
"""
from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator

from query import price_tier


class Restaurant(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = Field(None, description="Document id (string ObjectId)")
    name: str = Field(..., description="Restaurant name")
    category: str = Field(..., description="Cuisine category e.g. 'Indian'")
    city: str = Field(..., description="City name")
    price: int = Field(2, ge=1, le=4, description="Price tier, 1=budget, 4=premium")
    photo: Optional[str] = Field(None, description="Hero photo URL")
    numRatings: int = Field(0, ge=0, description="Number of ratings")
    sumRating: float = Field(0, ge=0, description="Sum of all ratings")
    avgRating: float = Field(0, ge=0, description="sumRating / numRatings")
    timestamp: Optional[datetime] = None


class Review(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    restaurantId: Optional[str] = Field(None, description="ID of the restaurant (string ObjectId)")
    rating: float = Field(..., ge=1, le=5, description="Star rating 1-5")
    text: Optional[str] = Field(None, description="Review text")
    userName: Optional[str] = Field(None, description="Reviewer display name")
    userId: Optional[str] = None
    timestamp: Optional[datetime] = Field(None, description="Assigned when the review commits")


class ReviewCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    text: Optional[str] = None
    userName: Optional[str] = None
    userId: Optional[str] = None


class RestaurantFilters(BaseModel):
    category: Optional[str] = None
    city: Optional[str] = None
    # Either an integer tier or the "$$" symbol form
    price: Optional[Union[int, str]] = None
    sort: Optional[str] = Field(None, description="'Rating' (default) or 'Review'")

    @field_validator("price", mode="before")
    @classmethod
    def digits_are_tiers(cls, v):
        if isinstance(v, str) and v.strip().isdigit():
            return price_tier(v)
        return v


class PhotoUpdate(BaseModel):
    photo: HttpUrl


class RestaurantDetail(BaseModel):
    restaurant: Restaurant
    reviews: List[Review] = Field(default_factory=list)
