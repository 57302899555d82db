from urllib.parse import parse_qs, urlparse

from frontend.tests.helpers import ALICE, BOB, api_response, event_payload, log_in


def _query(location):
    return parse_qs(urlparse(location).query)


# --- ROUTE GUARD ---
def test_dashboard_redirects_to_login_without_session(client, http):
    response = client.get("/dashboard")

    assert response.status_code == 302
    assert response.headers["Location"] == "/login?redirect=%2Fdashboard"
    http.request.assert_not_called()


def test_create_page_requires_session(client):
    response = client.get("/events/new")
    assert response.status_code == 302
    assert response.headers["Location"].startswith("/login")


def test_events_page_open_without_session(client, http):
    http.request.return_value = api_response(200, [event_payload()])

    response = client.get("/events")

    assert response.status_code == 200
    body = response.get_data(as_text=True)
    assert "PyCon Meetup" in body
    assert "7 of 10 seats left" in body
    assert "Login" in body


def test_events_page_shows_error_banner(client, http):
    http.request.return_value = api_response(500, {"error": "Failed to get events"})

    response = client.get("/events")

    assert response.status_code == 500
    assert "Failed to get events" in response.get_data(as_text=True)


# --- LOGIN / LOGOUT ---
def test_login_stores_session_and_follows_redirect(client, storage, http):
    http.request.return_value = api_response(200, {"token": "token-abc", "user": ALICE})

    response = client.post("/login", data={"username": "alice", "password": "secret", "redirect": "/events/new"})

    assert response.status_code == 302
    assert response.headers["Location"] == "/events/new"
    assert storage.get("token") == "token-abc"


def test_login_ignores_external_redirect(client, http):
    http.request.return_value = api_response(200, {"token": "token-abc", "user": ALICE})

    response = client.post("/login", data={"username": "alice", "password": "secret", "redirect": "//evil.example"})

    assert response.headers["Location"] == "/dashboard"


def test_login_failure_shows_server_message(client, storage, http):
    http.request.return_value = api_response(401, {"error": "invalid credentials"})

    response = client.post("/login", data={"username": "alice", "password": "wrong"})

    assert response.status_code == 401
    assert "invalid credentials" in response.get_data(as_text=True)
    assert storage.get("token") is None


def test_login_with_malformed_user_shows_error(client, storage, http):
    http.request.return_value = api_response(200, {"token": "t", "user": {"username": "alice"}})

    response = client.post("/login", data={"username": "alice", "password": "secret"})

    assert response.status_code == 502
    assert "Login response did not include a valid user." in response.get_data(as_text=True)
    assert storage.get("token") is None


def test_login_validation_never_calls_api(client, http):
    response = client.post("/login", data={"username": "", "password": ""})

    assert response.status_code == 400
    assert "Username is required" in response.get_data(as_text=True)
    http.request.assert_not_called()


def test_logout_clears_session(client, storage):
    log_in(storage)

    response = client.post("/logout")

    assert response.status_code == 302
    assert storage.get("token") is None
    assert storage.get("user") is None


def test_register_account_then_login_page(client, http):
    http.request.return_value = api_response(201, {"id": 5, "message": "User registered successfully"})

    response = client.post("/register", data={
        "username": "carol",
        "email": "carol@example.com",
        "password": "secret",
        "confirm_password": "secret",
    })

    assert response.status_code == 302
    assert response.headers["Location"] == "/login"


def test_register_account_password_mismatch(client, http):
    response = client.post("/register", data={
        "username": "carol",
        "email": "carol@example.com",
        "password": "secret",
        "confirm_password": "different",
    })

    assert response.status_code == 400
    assert "Passwords do not match" in response.get_data(as_text=True)
    http.request.assert_not_called()


# --- EVENTS ---
def test_owner_sees_edit_controls(client, storage, http):
    log_in(storage, ALICE)
    http.request.side_effect = [
        api_response(200, event_payload(creator_id=1)),
        api_response(200, [{"id": 9, "event_id": 42, "user_id": 2, "notes": "vegetarian"}]),
    ]

    response = client.get("/events/42")

    body = response.get_data(as_text=True)
    assert "Edit Event" in body
    assert "vegetarian" in body
    assert "Register for this Event" not in body


def test_non_owner_sees_register_button(client, storage, http):
    log_in(storage, BOB)
    http.request.return_value = api_response(200, event_payload(creator_id=1))

    body = client.get("/events/42").get_data(as_text=True)

    assert "Register for this Event" in body
    assert "Edit Event" not in body


def test_missing_event_is_404(client, http):
    http.request.return_value = api_response(404, {"error": "Event not found"})

    assert client.get("/events/999").status_code == 404


def test_create_event_redirects_to_confirmation(client, storage, http):
    log_in(storage)
    http.request.return_value = api_response(201, {"id": 77})

    response = client.post("/events/new", data={
        "title": "Sprint",
        "description": "Hack day",
        "location": "Lab",
        "event_type": "Workshop",
        "event_date": "2999-01-01T10:00",
        "seats": "12",
    })

    assert response.status_code == 302
    query = _query(response.headers["Location"])
    assert query["action"] == ["event-created"]
    assert query["eventId"] == ["77"]
    assert query["event"] == ["Sprint"]

    _, kwargs = http.request.call_args
    assert kwargs["headers"]["Authorization"] == "Bearer token-abc"
    assert kwargs["json"]["seats"] == 12


def test_create_event_invalid_form_stays_local(client, storage, http):
    log_in(storage)

    response = client.post("/events/new", data={"title": "Sprint", "event_date": "2000-01-01T10:00", "seats": "0"})

    assert response.status_code == 400
    body = response.get_data(as_text=True)
    assert "Event date must be in the future" in body
    assert "Available seats must be greater than 0" in body
    http.request.assert_not_called()


def test_expired_token_on_create_sends_to_login(client, storage, http):
    log_in(storage)
    http.request.return_value = api_response(401, {"error": "Invalid token"})

    response = client.post("/events/new", data={
        "title": "Sprint",
        "description": "Hack day",
        "location": "Lab",
        "event_type": "Workshop",
        "event_date": "2999-01-01T10:00",
        "seats": "12",
    })

    assert response.status_code == 302
    assert response.headers["Location"].startswith("/login")
    assert storage.get("token") is None


def test_edit_by_non_owner_is_refused(client, storage, http):
    log_in(storage, BOB)
    http.request.return_value = api_response(200, event_payload(creator_id=1))

    response = client.get("/events/42/edit")

    assert response.status_code == 403
    assert "You can only edit events you created." in response.get_data(as_text=True)


def test_edit_form_is_prefilled(client, storage, http):
    log_in(storage, ALICE)
    http.request.return_value = api_response(200, event_payload())

    body = client.get("/events/42/edit").get_data(as_text=True)

    assert 'value="PyCon Meetup"' in body
    assert 'value="2999-05-01T18:00"' in body


def test_edit_form_shows_offset_date_in_utc(client, storage, http):
    log_in(storage, ALICE)
    event = event_payload(event_date="2999-05-01T18:00:00+03:00")
    http.request.return_value = api_response(200, event)

    body = client.get("/events/42/edit").get_data(as_text=True)
    assert 'value="2999-05-01T15:00"' in body

    http.request.side_effect = [
        api_response(200, event),
        api_response(200, {"message": "Event updated successfully"}),
    ]
    client.post("/events/42/edit", data={
        "title": "PyCon Meetup",
        "description": "Talks and pizza",
        "location": "Room 101",
        "event_type": "Meetup",
        "event_date": "2999-05-01T15:00",
        "seats": "10",
    })

    _, kwargs = http.request.call_args
    assert kwargs["json"]["event_date"] == "2999-05-01T15:00:00Z"


def test_edit_event_confirms_update(client, storage, http):
    log_in(storage, ALICE)
    http.request.side_effect = [
        api_response(200, event_payload()),
        api_response(200, {"message": "Event updated successfully"}),
    ]

    response = client.post("/events/42/edit", data={
        "title": "Renamed",
        "description": "Talks",
        "location": "Room 2",
        "event_type": "Meetup",
        "event_date": "2999-05-01T18:00",
        "seats": "10",
    })

    query = _query(response.headers["Location"])
    assert query["action"] == ["event-updated"]
    assert query["eventId"] == ["42"]
    assert query["event"] == ["Renamed"]


def test_delete_event_confirms(client, storage, http):
    log_in(storage, ALICE)
    http.request.return_value = api_response(200, {"message": "Event deleted successfully"})

    response = client.post("/events/42/delete")

    assert _query(response.headers["Location"])["action"] == ["event-deleted"]


# --- REGISTER FOR EVENT ---
def test_register_page_requires_login_with_return_url(client, http):
    response = client.get("/events/42/register")

    assert response.status_code == 302
    assert _query(response.headers["Location"])["redirect"] == ["/events/42/register"]
    http.request.assert_not_called()


def test_cannot_register_for_own_event(client, storage, http):
    log_in(storage, ALICE)
    http.request.return_value = api_response(200, event_payload(creator_id=1))

    response = client.post("/events/42/register", data={"notes": "me"})

    assert response.status_code == 409
    assert "You cannot register for your own event." in response.get_data(as_text=True)
    assert http.request.call_count == 1


def test_cannot_register_for_full_event(client, storage, http):
    log_in(storage, BOB)
    http.request.return_value = api_response(200, event_payload(seats=3, registrations=3))

    response = client.get("/events/42/register")

    assert response.status_code == 409
    assert "reached its capacity" in response.get_data(as_text=True)


def test_register_for_event(client, storage, http):
    log_in(storage, BOB, token="token-bob")
    http.request.side_effect = [
        api_response(200, event_payload(creator_id=1)),
        api_response(201, {"id": 3}),
    ]

    response = client.post("/events/42/register", data={"notes": "vegetarian"})

    query = _query(response.headers["Location"])
    assert query["action"] == ["registration-successful"]
    assert query["event"] == ["PyCon Meetup"]
    _, kwargs = http.request.call_args
    assert kwargs["json"] == {"event_id": 42, "notes": "vegetarian"}


def test_server_rejection_is_shown(client, storage, http):
    log_in(storage, BOB)
    http.request.side_effect = [
        api_response(200, event_payload(creator_id=1)),
        api_response(400, {"error": "Event is full"}),
    ]

    response = client.post("/events/42/register", data={})

    assert response.status_code == 400
    assert "Event is full" in response.get_data(as_text=True)


# --- DASHBOARD ---
def test_dashboard_lists_my_events(client, storage, http):
    log_in(storage)
    http.request.return_value = api_response(200, [event_payload(title="My Workshop")])

    response = client.get("/dashboard")

    assert response.status_code == 200
    assert "My Workshop" in response.get_data(as_text=True)
    args, _ = http.request.call_args
    assert args[1].endswith("/my-events")


def test_dashboard_registrations_tab(client, storage, http):
    log_in(storage)
    http.request.return_value = api_response(200, [
        {"id": 5, "event_id": 42, "user_id": 1, "event_title": "Joined Event", "notes": "row 3"},
    ])

    response = client.get("/dashboard?tab=registrations")

    body = response.get_data(as_text=True)
    assert "Joined Event" in body
    assert "row 3" in body
    args, _ = http.request.call_args
    assert args[1].endswith("/my-registrations")


def test_cancel_registration(client, storage, http):
    log_in(storage)
    http.request.return_value = api_response(200, {"message": "Registration deleted successfully"})

    response = client.post("/dashboard/registrations/5/cancel")

    assert _query(response.headers["Location"])["action"] == ["registration-deleted"]
    args, _ = http.request.call_args
    assert args == ("DELETE", "http://api.test/api/registrations/5")


def test_cancel_registration_with_expired_token_goes_to_login(client, storage, http):
    log_in(storage)
    http.request.return_value = api_response(401, {"error": "Invalid token"})

    response = client.post("/dashboard/registrations/5/cancel")

    assert response.status_code == 302
    assert response.headers["Location"].startswith("/login")
    assert storage.get("token") is None


def test_edit_registration_notes(client, storage, http):
    log_in(storage)
    http.request.side_effect = [
        api_response(200, {"id": 5, "event_id": 42, "notes": "old"}),
        api_response(200, {"message": "Registration updated successfully"}),
    ]

    response = client.post("/dashboard/registrations/5/edit", data={"notes": "new"})

    assert response.status_code == 302
    _, kwargs = http.request.call_args
    assert kwargs["json"] == {"event_id": 42, "notes": "new"}


def test_navbar_shows_username_when_logged_in(client, storage):
    log_in(storage)

    body = client.get("/").get_data(as_text=True)

    assert "alice" in body
    assert "Logout" in body


def test_create_form_checks_token_with_service(client, storage, http):
    log_in(storage)
    http.request.return_value = api_response(200, ALICE)

    response = client.get("/events/new")

    assert response.status_code == 200
    assert "Create New Event" in response.get_data(as_text=True)
    args, _ = http.request.call_args
    assert args == ("GET", "http://api.test/api/me")


def test_create_form_with_rejected_token_goes_to_login(client, storage, http):
    log_in(storage)
    http.request.return_value = api_response(401, {"error": "Invalid token"})

    response = client.get("/events/create")

    assert response.status_code == 302
    assert _query(response.headers["Location"])["redirect"] == ["/events/create"]
    assert storage.get("token") is None


def test_cookie_session_survives_between_requests(http):
    from frontend.web.server import create_app

    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "test_secret",
        "API_BASE_URL": "http://api.test/api",
        "HTTP_SESSION": http,
    })
    client = app.test_client()
    http.request.return_value = api_response(200, {"token": "token-abc", "user": ALICE})
    client.post("/login", data={"username": "alice", "password": "secret"})

    http.request.return_value = api_response(200, [])
    response = client.get("/dashboard")

    assert response.status_code == 200
    _, kwargs = http.request.call_args
    assert kwargs["headers"]["Authorization"] == "Bearer token-abc"

    client.post("/logout")
    assert client.get("/dashboard").status_code == 302
