"""
Derived bootcamp aggregates.

``average_cost`` and ``average_rating`` are never written by clients. The course and
review handlers call these functions after a child is inserted or permanently
deleted. Updates to an existing child do not recompute. When the last child is
gone the parent field is reset to null.
"""

import math
from typing import Optional

from pymongo.errors import PyMongoError

from database import to_object_id
from logging_setup import get_logger

logger = get_logger(__name__)


def _average(db, collection: str, bootcamp_id: str, field: str) -> Optional[float]:
    pipeline = [
        {"$match": {"bootcamp_id": bootcamp_id}},
        {"$group": {"_id": "$bootcamp_id", "avg": {"$avg": f"${field}"}}},
    ]
    agg = list(db[collection].aggregate(pipeline))
    if not agg or agg[0]["avg"] is None:
        return None
    return agg[0]["avg"]


def round_cost(avg: Optional[float]) -> Optional[float]:
    if avg is None:
        return None
    return math.ceil(avg / 10) * 10


def _recompute(db, collection: str, field: str, target: str, bootcamp_id: str, rounding=None) -> None:
    try:
        value = _average(db, collection, bootcamp_id, field)
        if rounding is not None:
            value = rounding(value)
        db["bootcamp"].update_one({"_id": to_object_id(bootcamp_id)}, {"$set": {target: value}})
        logger.debug("aggregate_updated", bootcamp_id=bootcamp_id, field=target, value=value)
    except PyMongoError:
        # the triggering create/delete already succeeded
        logger.exception("aggregate_update_failed", bootcamp_id=bootcamp_id, field=target)


def update_average_cost(db, bootcamp_id: str) -> None:
    _recompute(db, "course", "tuition", "average_cost", bootcamp_id, rounding=round_cost)


def update_average_rating(db, bootcamp_id: str) -> None:
    _recompute(db, "review", "rating", "average_rating", bootcamp_id)
