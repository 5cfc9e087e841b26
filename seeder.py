"""
Load or wipe the sample data in ``_data/``.

    python seeder.py -i   # import
    python seeder.py -d   # destroy
"""

import json
import sys
from datetime import datetime, timezone
from pathlib import Path

from bson import ObjectId

import database
from aggregates import update_average_cost, update_average_rating
from logging_setup import get_logger
from schemas import Bootcamp, Course, Review, User, make_slug
from security import hash_password

logger = get_logger(__name__)

DATA_DIR = Path(__file__).parent / "_data"

# Bootcamps reference users, courses and reviews reference both
SEED_ORDER = [("users.json", User), ("bootcamps.json", Bootcamp), ("courses.json", Course), ("reviews.json", Review)]


def _load(path: Path):
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def _prepare(raw: dict, model) -> dict:
    raw = dict(raw)
    doc_id = raw.pop("_id", None)
    if model is User:
        raw["password_hash"] = hash_password(raw.pop("password"))
    doc = model(**raw).model_dump()
    if model is Bootcamp and not doc.get("slug"):
        doc["slug"] = make_slug(doc["name"])
    if doc_id:
        doc["_id"] = ObjectId(doc_id)
    doc["created_at"] = datetime.now(timezone.utc)
    return doc


def import_data(db, data_dir: Path = DATA_DIR) -> dict:
    counts = {}
    for filename, model in SEED_ORDER:
        path = data_dir / filename
        if not path.exists():
            continue
        docs = [_prepare(raw, model) for raw in _load(path)]
        if docs:
            db[database.collection_name(model)].insert_many(docs)
        counts[database.collection_name(model)] = len(docs)

    for bootcamp_id in {str(b["_id"]) for b in db["bootcamp"].find({}, {"_id": 1})}:
        update_average_cost(db, bootcamp_id)
        update_average_rating(db, bootcamp_id)
    logger.info("data_imported", **counts)
    return counts


def delete_data(db) -> None:
    for _, model in SEED_ORDER:
        db[database.collection_name(model)].delete_many({})
    logger.info("data_destroyed")


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if database.db is None:
        logger.error("database_not_configured", hint="set DATABASE_URL")
        return 1
    if argv[:1] == ["-i"]:
        database.ensure_indexes(database.db)
        import_data(database.db)
    elif argv[:1] == ["-d"]:
        delete_data(database.db)
    else:
        print(__doc__)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
