from typing import Any, Dict, List

EARTH_RADIUS_MILES = 3963


def radius_filter(longitude: float, latitude: float, distance_miles: float) -> Dict[str, Any]:
    radians = distance_miles / EARTH_RADIUS_MILES
    return {"location": {"$geoWithin": {"$centerSphere": [[longitude, latitude], radians]}}}


def bootcamps_in_radius(db, geocoder, zipcode: str, distance_miles: float) -> List[Dict[str, Any]]:
    loc = geocoder.geocode(zipcode)
    return list(db["bootcamp"].find(radius_filter(loc["longitude"], loc["latitude"], distance_miles)))
