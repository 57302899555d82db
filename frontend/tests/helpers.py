import json

import requests

API_BASE = "http://api.test/api"

ALICE = {"id": 1, "username": "alice", "email": "alice@example.com", "role": "user"}
BOB = {"id": 2, "username": "bob", "email": "bob@example.com", "role": "user"}


def api_response(status=200, body=None, reason="OK"):
    """
    Build a real requests.Response with a JSON body.
    """
    response = requests.Response()
    response.status_code = status
    response.reason = reason
    response._content = b"" if body is None else json.dumps(body).encode("utf-8")
    response.headers["Content-Type"] = "application/json"
    return response


def event_payload(**overrides):
    data = {
        "id": 42,
        "title": "PyCon Meetup",
        "description": "Talks and pizza",
        "location": "Room 101",
        "event_type": "Meetup",
        "event_date": "2999-05-01T18:00:00Z",
        "seats": 10,
        "creator_id": 1,
        "registrations": 3,
        "available_seats": 7,
        "created_at": "2024-01-01T10:00:00Z",
    }
    data.update(overrides)
    return data


def log_in(storage, user=ALICE, token="token-abc"):
    storage.set_items({"token": token, "user": json.dumps(user)})
