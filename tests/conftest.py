import mongomock
import pytest
from fastapi.testclient import TestClient

import main
from database import create_document, ensure_indexes, get_db
from errors import GeocoderError
from geocoder import get_geocoder
from mailer import EmailError, get_mailer
from schemas import User as UserSchema
from security import create_access_token, hash_password

BOSTON = {
    "latitude": 42.350846,
    "longitude": -71.104028,
    "formatted_address": "233 Bay State Rd, Boston, MA 02215, US",
    "street": "233 Bay State Rd",
    "city": "Boston",
    "state": "MA",
    "zipcode": "02215",
    "country": "US",
}


class StubGeocoder:
    def __init__(self):
        self.results = {}
        self.fail = False
        self.calls = []

    def geocode(self, location):
        self.calls.append(location)
        if self.fail:
            raise GeocoderError(f"Geocoding failed for '{location}'")
        return self.results.get(location, BOSTON)


class RecordingMailer:
    def __init__(self):
        self.sent = []
        self.fail = False

    def __call__(self, to, subject, message):
        if self.fail:
            raise EmailError("smtp down")
        self.sent.append({"to": to, "subject": subject, "message": message})


@pytest.fixture
def db():
    database = mongomock.MongoClient().devcamper_test
    ensure_indexes(database, geo=False)
    return database


@pytest.fixture
def geocoder():
    return StubGeocoder()


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def client(db, geocoder, mailer):
    main.app.dependency_overrides[get_db] = lambda: db
    main.app.dependency_overrides[get_geocoder] = lambda: geocoder
    main.app.dependency_overrides[get_mailer] = lambda: mailer
    test_client = TestClient(main.app)
    yield test_client
    main.app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(role="user", email=None, password="123456", name="Test User"):
        counter["n"] += 1
        email = email or f"{role}{counter['n']}@example.com"
        return create_document(db, "user", UserSchema(
            name=name,
            email=email,
            role=role,
            password_hash=hash_password(password),
        ))
    return _make


def auth_header(user):
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user['_id'])})}"}


BOOTCAMP_PAYLOAD = {
    "name": "Devworks Bootcamp",
    "description": "Full stack JavaScript bootcamp in Boston",
    "website": "https://devworks.com",
    "phone": "(111) 111-1111",
    "email": "enroll@devworks.com",
    "address": "233 Bay State Rd Boston MA 02215",
    "careers": ["Web Development", "UI/UX"],
    "housing": True,
}

COURSE_PAYLOAD = {
    "title": "Front End Web Development",
    "description": "HTML, CSS and JavaScript essentials",
    "weeks": 8,
    "tuition": 8000,
    "minimum_skill": "beginner",
}


@pytest.fixture
def publisher(make_user):
    return make_user("publisher")


@pytest.fixture
def bootcamp(client, publisher):
    resp = client.post("/api/v1/bootcamps", json=BOOTCAMP_PAYLOAD, headers=auth_header(publisher))
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]
