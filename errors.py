"""Exceptions raised by the restaurants data layer."""


class RestaurantStoreError(Exception):
    pass


class InvalidArgument(RestaurantStoreError, ValueError):
    """A write or read helper was called with a missing or malformed argument."""


class RestaurantNotFound(RestaurantStoreError, LookupError):
    def __init__(self, restaurant_id):
        super().__init__(f"Restaurant not found: {restaurant_id}")
        self.restaurant_id = restaurant_id
