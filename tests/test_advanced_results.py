from datetime import datetime, timedelta, timezone

import pytest
from starlette.datastructures import QueryParams

from advanced_results import (
    Populate,
    advanced_results,
    build_filter,
    build_projection,
    build_sort,
    paginate,
    positive_int,
)
from schemas import USER_PRIVATE_FIELDS, Bootcamp, Course


# =============================================================================
# Filter rewriting
# =============================================================================

def test_operator_suffix_becomes_mongo_operator():
    q = build_filter({"average_cost[lte]": "10000"}, Bootcamp)
    assert q == {"average_cost": {"$lte": 10000}}


def test_operators_on_one_field_are_merged():
    q = build_filter(QueryParams("tuition[gte]=1000&tuition[lt]=9000.5"), Course)
    assert q == {"tuition": {"$gte": 1000, "$lt": 9000.5}}


def test_in_operator_splits_and_merges_repeated_keys():
    q = build_filter(QueryParams("careers[in]=Business,UI/UX&careers[in]=Other"), Bootcamp)
    assert q == {"careers": {"$in": ["Business", "UI/UX", "Other"]}}


def test_reserved_keys_are_not_filters():
    q = build_filter({"select": "name", "sort": "-name", "page": "2", "limit": "5", "housing": "true"}, Bootcamp)
    assert q == {"housing": True}


def test_unknown_operator_and_unknown_field_pass_through():
    q = build_filter({"tuition[foo]": "1", "location.state": "MA", "nope": "x"}, Course)
    assert q == {"tuition[foo]": "1", "location.state": "MA", "nope": "x"}


def test_uncastable_value_is_kept_as_string():
    assert build_filter({"weeks[gt]": "many"}, Course) == {"weeks": {"$gt": "many"}}


def test_projection_and_sort():
    assert build_projection("name,description") == {"name": 1, "description": 1}
    assert build_projection(None) is None
    assert build_projection("name,password_hash", hidden=USER_PRIVATE_FIELDS) == {"name": 1}
    assert build_projection(None, hidden=("password_hash",)) == {"password_hash": 0}
    assert build_projection("-description,-weeks") == {"description": 0, "weeks": 0}
    assert build_projection("-name", hidden=("password_hash",)) == {"name": 0, "password_hash": 0}
    assert build_projection("title,-description") == {"title": 1}
    assert build_sort(None) == [("created_at", -1)]
    assert build_sort("name,-average_cost") == [("name", 1), ("average_cost", -1)]


@pytest.mark.parametrize("value,expected", [(None, 25), ("abc", 25), ("0", 25), ("-4", 25), ("7", 7)])
def test_positive_int_falls_back_to_default(value, expected):
    assert positive_int(value, 25) == expected


# =============================================================================
# Pagination math
# =============================================================================

@pytest.mark.parametrize("page,limit,total", [(1, 25, 0), (1, 10, 10), (1, 10, 11), (2, 10, 25), (3, 10, 25), (4, 10, 25)])
def test_cursors_present_iff_more_or_earlier_pages(page, limit, total):
    pagination = paginate(page, limit, total)
    start_index = (page - 1) * limit
    assert ("next" in pagination) == (page * limit < total)
    assert ("prev" in pagination) == (start_index > 0)
    if "next" in pagination:
        assert pagination["next"] == {"page": page + 1, "limit": limit}
    if "prev" in pagination:
        assert pagination["prev"] == {"page": page - 1, "limit": limit}


# =============================================================================
# Against a collection
# =============================================================================

def _seed_courses(db, n, bootcamp_id="b1", tuition_step=1000):
    now = datetime.now(timezone.utc)
    db["course"].insert_many([
        {
            "title": f"Course {i:02d}",
            "description": "d",
            "weeks": 4 + i % 3,
            "tuition": tuition_step * i,
            "minimum_skill": "beginner",
            "bootcamp_id": bootcamp_id,
            "user_id": "u1",
            "created_at": now + timedelta(seconds=i),
        }
        for i in range(n)
    ])


def test_middle_page_has_both_cursors(db):
    _seed_courses(db, 30)
    res = advanced_results(db, "course", {"page": "2", "limit": "10", "sort": "title"}, model=Course)
    assert res["success"] is True
    assert res["count"] == 10
    assert res["pagination"] == {"next": {"page": 3, "limit": 10}, "prev": {"page": 1, "limit": 10}}
    assert [c["title"] for c in res["data"]] == [f"Course {i:02d}" for i in range(10, 20)]


def test_last_page_has_no_next(db):
    _seed_courses(db, 30)
    res = advanced_results(db, "course", {"page": "3", "limit": "10"}, model=Course)
    assert res["count"] == 10
    assert "next" not in res["pagination"]


def test_default_sort_is_newest_first(db):
    _seed_courses(db, 3)
    res = advanced_results(db, "course", {}, model=Course)
    assert [c["title"] for c in res["data"]] == ["Course 02", "Course 01", "Course 00"]


def test_total_counts_filtered_documents_not_whole_collection(db):
    # 30 courses, 5 of them with tuition >= 25000: one page of 5 is the whole result
    _seed_courses(db, 30)
    res = advanced_results(db, "course", {"tuition[gte]": "25000", "limit": "5"}, model=Course)
    assert res["count"] == 5
    assert res["pagination"] == {}


def test_filter_on_missing_field_yields_empty_page(db):
    _seed_courses(db, 3)
    res = advanced_results(db, "course", {"colour": "blue"}, model=Course)
    assert res == {"success": True, "count": 0, "pagination": {}, "data": []}


def test_select_limits_fields(db):
    _seed_courses(db, 2)
    res = advanced_results(db, "course", {"select": "title,tuition"}, model=Course)
    assert set(res["data"][0]) == {"id", "title", "tuition"}


def test_minus_prefixed_select_excludes_fields(db):
    _seed_courses(db, 2)
    res = advanced_results(db, "course", {"select": "-description,-user_id"}, model=Course)
    fields = set(res["data"][0])
    assert "description" not in fields and "user_id" not in fields
    assert {"id", "title", "tuition", "weeks"} <= fields


def test_hidden_fields_never_returned(db):
    db["user"].insert_one({"name": "A", "email": "a@example.com", "role": "user", "password_hash": "x",
                           "created_at": datetime.now(timezone.utc)})
    res = advanced_results(db, "user", {}, hidden=USER_PRIVATE_FIELDS)
    assert "password_hash" not in res["data"][0]
    res = advanced_results(db, "user", {"select": "name,password_hash"}, hidden=USER_PRIVATE_FIELDS)
    assert set(res["data"][0]) == {"id", "name"}


def test_forward_and_reverse_populate(db):
    bootcamp_id = db["bootcamp"].insert_one({"name": "B", "description": "desc", "address": "x",
                                             "created_at": datetime.now(timezone.utc)}).inserted_id
    _seed_courses(db, 2, bootcamp_id=str(bootcamp_id))

    courses = advanced_results(
        db, "course", {}, model=Course,
        populates=[Populate(collection="bootcamp", local_field="bootcamp_id", into="bootcamp",
                            select=["name", "description"])],
    )
    assert courses["data"][0]["bootcamp"] == {"id": str(bootcamp_id), "name": "B", "description": "desc"}

    bootcamps = advanced_results(
        db, "bootcamp", {}, model=Bootcamp,
        populates=[Populate(collection="course", local_field="_id", foreign_field="bootcamp_id",
                            into="courses", many=True)],
    )
    assert sorted(c["title"] for c in bootcamps["data"][0]["courses"]) == ["Course 00", "Course 01"]
