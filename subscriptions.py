"""
Push listeners over MongoDB change streams.

Each subscription re-reads its query and hands the full mapped result to the
callback: once right after the change stream opens, then after every change
the stream reports. Delivery runs on a daemon thread; ``unsubscribe()``
stops it.
"""
import threading
from typing import Any, Callable, Dict, List, Optional

from pymongo.database import Database
from pymongo.errors import PyMongoError

from config import get_settings
from database import RATINGS, RESTAURANTS
from errors import InvalidArgument
from logging_config import get_logger
from restaurants import (
    get_restaurant_by_id,
    restaurant_oid,
    restaurants_query,
    reviews_query,
    run_query,
)

logger = get_logger(__name__)


def _poll_seconds(poll_seconds: Optional[float]) -> float:
    if poll_seconds is not None:
        return poll_seconds
    return get_settings().watch_poll_seconds


class Subscription:
    def __init__(self, name: str, open_stream: Callable[[], Any], load: Callable[[], Any],
                 callback: Callable[[Any], None], poll_seconds: Optional[float] = None):
        self.name = name
        self._open_stream = open_stream
        self._load = load
        self._callback = callback
        self.poll_seconds = _poll_seconds(poll_seconds)
        self._stopped = threading.Event()
        self._thread = threading.Thread(target=self._run, name=f"subscription-{name}", daemon=True)

    def start(self) -> "Subscription":
        self._thread.start()
        return self

    @property
    def active(self) -> bool:
        return self._thread.is_alive() and not self._stopped.is_set()

    def unsubscribe(self, timeout: Optional[float] = None) -> None:
        self._stopped.set()
        if self._thread.is_alive() and threading.current_thread() is not self._thread:
            self._thread.join(timeout)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.unsubscribe()

    def _deliver(self) -> None:
        try:
            data = self._load()
        except Exception:
            logger.exception("subscription_load_failed", subscription=self.name)
            return
        try:
            self._callback(data)
        except Exception:
            logger.exception("subscription_callback_failed", subscription=self.name)

    def _run(self) -> None:
        try:
            # The stream opens before the initial read so no change slips in between
            with self._open_stream() as stream:
                self._deliver()
                while not self._stopped.is_set():
                    change = stream.try_next()
                    if change is None:
                        self._stopped.wait(self.poll_seconds)
                        continue
                    if not self._stopped.is_set():
                        self._deliver()
        except PyMongoError:
            logger.exception("subscription_stream_failed", subscription=self.name)
        finally:
            self._stopped.set()


def _check_callback(callback) -> None:
    if not callable(callback):
        logger.warning("callback_not_callable", callback=repr(callback))
        raise InvalidArgument("The callback parameter is not a function")


def get_restaurants_snapshot(db: Database, callback: Callable[[List[Dict[str, Any]]], None],
                             filters: Optional[Any] = None,
                             poll_seconds: Optional[float] = None) -> Subscription:
    _check_callback(callback)
    query = restaurants_query(filters)
    return Subscription(
        "restaurants",
        open_stream=lambda: db[RESTAURANTS].watch(),
        load=lambda: run_query(db, query),
        callback=callback,
        poll_seconds=poll_seconds,
    ).start()


def get_restaurant_snapshot_by_id(db: Database, restaurant_id: Any,
                                  callback: Callable[[Optional[Dict[str, Any]]], None],
                                  poll_seconds: Optional[float] = None) -> Subscription:
    oid = restaurant_oid(restaurant_id)
    _check_callback(callback)
    return Subscription(
        f"restaurant-{oid}",
        open_stream=lambda: db[RESTAURANTS].watch([{"$match": {"documentKey._id": oid}}]),
        load=lambda: get_restaurant_by_id(db, oid),
        callback=callback,
        poll_seconds=poll_seconds,
    ).start()


def get_reviews_snapshot_by_restaurant_id(db: Database, restaurant_id: Any,
                                          callback: Callable[[List[Dict[str, Any]]], None],
                                          poll_seconds: Optional[float] = None) -> Subscription:
    query = reviews_query(restaurant_id)
    _check_callback(callback)
    restaurant_key = query.filter_document()["restaurantId"]
    return Subscription(
        f"reviews-{restaurant_key}",
        open_stream=lambda: db[RATINGS].watch([{"$match": {"fullDocument.restaurantId": restaurant_key}}]),
        load=lambda: run_query(db, query),
        callback=callback,
        poll_seconds=poll_seconds,
    ).start()
