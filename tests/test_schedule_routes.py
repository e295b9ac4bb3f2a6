from schedule_app.services.store import ScheduleStore


def _book(client, sid, token, name="Alice", start="09:00", duration="30"):
    return client.post(
        f"/schedule/{sid}/appointments",
        data={"csrf_token": token, "name": name, "start_time": start, "duration": duration},
    )


def test_home_page_renders_form(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert b"Create Schedule" in resp.data
    assert b'name="csrf_token"' in resp.data


def test_create_schedule_redirects_to_view(app, client, csrf_token):
    resp = client.post(
        "/schedules",
        data={
            "csrf_token": csrf_token,
            "title": "Office Hours",
            "icon": "🧑‍🏫",
            "window_start": "09:00",
            "window_end": "12:00",
        },
    )
    assert resp.status_code == 302
    location = resp.headers["Location"]
    assert "/schedule/" in location
    sid = location.split("/schedule/", 1)[1].split("?", 1)[0]
    with app.app_context():
        assert ScheduleStore().fetch_schedule(sid).title == "Office Hours"

    page = client.get(location)
    assert page.status_code == 200
    assert b"Office Hours" in page.data
    assert b'data-slot="11:45"' in page.data
    assert b'data-slot="12:00"' not in page.data


def test_create_schedule_requires_title(client, csrf_token):
    resp = client.post(
        "/schedules",
        data={"csrf_token": csrf_token, "title": "", "window_start": "09:00", "window_end": "17:00"},
    )
    assert resp.status_code == 400
    assert b"Please enter a schedule name." in resp.data


def test_create_schedule_rejects_inverted_window(client, csrf_token):
    resp = client.post(
        "/schedules",
        data={"csrf_token": csrf_token, "title": "Late", "window_start": "17:00", "window_end": "09:00"},
    )
    assert resp.status_code == 400
    assert b"The end time must be after the start time." in resp.data


def test_post_without_csrf_is_rejected(client):
    resp = client.post("/schedules", data={"title": "No token"})
    assert resp.status_code == 400
    assert resp.get_json()["success"] is False


def test_unknown_schedule_is_404(client):
    resp = client.get("/schedule/does-not-exist")
    assert resp.status_code == 404
    assert b"Schedule not found" in resp.data


def test_view_uses_query_window(client, make_schedule):
    sid = make_schedule()
    resp = client.get(f"/schedule/{sid}?start=09:00&end=10:00&granularity=30")
    assert resp.status_code == 200
    assert b'data-slot="09:00"' in resp.data
    assert b'data-slot="09:30"' in resp.data
    assert b'data-slot="10:00"' not in resp.data


def test_view_ignores_bad_query_window(client, make_schedule):
    sid = make_schedule()
    resp = client.get(f"/schedule/{sid}?start=nonsense&granularity=7")
    assert resp.status_code == 200
    assert b'data-slot="09:00"' in resp.data
    assert b'data-slot="16:45"' in resp.data


def test_booking_flow(client, csrf_token, make_schedule):
    sid = make_schedule()
    resp = _book(client, sid, csrf_token)
    assert resp.status_code == 302

    page = client.get(f"/schedule/{sid}")
    assert b"Appointment scheduled successfully!" in page.data
    assert b"Alice" in page.data
    assert b"09:00 - 09:30" in page.data

    conflict = _book(client, sid, csrf_token, name="Bob", start="09:15")
    assert conflict.status_code == 409
    assert b"overlaps with an existing appointment" in conflict.data
    assert b"Alice, 09:00 - 09:30" in conflict.data

    touching = _book(client, sid, csrf_token, name="Bob", start="09:30")
    assert touching.status_code == 302


def test_booking_validation_errors(client, csrf_token, make_schedule):
    sid = make_schedule()
    resp = _book(client, sid, csrf_token, name="  ")
    assert resp.status_code == 400
    assert b"Please enter your name." in resp.data

    resp = _book(client, sid, csrf_token, start="")
    assert resp.status_code == 400
    assert b"Please select a start time." in resp.data

    resp = _book(client, sid, csrf_token, start="23:45", duration="30")
    assert resp.status_code == 400
    assert b"Appointments must end by midnight." in resp.data


def test_booking_unknown_schedule(client, csrf_token):
    assert _book(client, "ghost", csrf_token).status_code == 404


def test_config_is_remembered_for_schedule(client, csrf_token, make_schedule):
    sid = make_schedule()
    resp = client.post(
        f"/schedule/{sid}/config",
        data={"csrf_token": csrf_token, "window_start": "08:00", "window_end": "10:00", "granularity": "60"},
    )
    assert resp.status_code == 302

    page = client.get(f"/schedule/{sid}?start=13:00&end=14:00")
    assert b"View settings saved." in page.data
    assert b'data-slot="08:00"' in page.data
    assert b'data-slot="09:00"' in page.data
    assert b'data-slot="13:00"' not in page.data


def test_config_rejects_inverted_window(client, csrf_token, make_schedule):
    sid = make_schedule()
    resp = client.post(
        f"/schedule/{sid}/config",
        data={"csrf_token": csrf_token, "window_start": "12:00", "window_end": "08:00", "granularity": "15"},
    )
    assert resp.status_code == 302
    page = client.get(f"/schedule/{sid}")
    assert b"The end time must be after the start time." in page.data
    assert b'data-slot="09:00"' in page.data


def test_delete_all_appointments(client, csrf_token, make_schedule):
    sid = make_schedule()
    _book(client, sid, csrf_token, name="Alice")
    _book(client, sid, csrf_token, name="Bob", start="10:00")

    resp = client.post(f"/schedule/{sid}/appointments/delete-all", data={"csrf_token": csrf_token})
    assert resp.status_code == 302
    page = client.get(f"/schedule/{sid}")
    assert b"All appointments have been deleted successfully!" in page.data
    assert b"data-appointment=" not in page.data


def test_delete_schedule(client, csrf_token, make_schedule):
    sid = make_schedule()
    _book(client, sid, csrf_token)
    resp = client.post(f"/schedule/{sid}/delete", data={"csrf_token": csrf_token})
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/")
    assert client.get(f"/schedule/{sid}").status_code == 404


def test_delete_schedule_partial_failure(client, csrf_token, make_schedule, monkeypatch):
    sid = make_schedule()
    _book(client, sid, csrf_token)

    from schedule_app.services.errors import StoreError

    def fail(self, schedule_id):
        raise StoreError("delete_schedule_failed")

    monkeypatch.setattr(ScheduleStore, "delete_schedule", fail)
    resp = client.post(f"/schedule/{sid}/delete", data={"csrf_token": csrf_token}, follow_redirects=True)
    assert b"Appointments were deleted but the schedule itself could not be removed." in resp.data

    page = client.get(f"/schedule/{sid}")
    assert page.status_code == 200
    assert b"data-appointment=" not in page.data


def test_store_outage_renders_unavailable(client, make_schedule, monkeypatch):
    sid = make_schedule()
    from schedule_app.services.errors import StoreError

    def fail(self, schedule_id):
        raise StoreError("fetch_appointments_failed")

    monkeypatch.setattr(ScheduleStore, "fetch_appointments", fail)
    resp = client.get(f"/schedule/{sid}")
    assert resp.status_code == 503


def test_config_rejects_malformed_window(client, csrf_token, make_schedule):
    sid = make_schedule()
    bad_posts = [
        {"window_start": "bogus", "window_end": "17:00", "granularity": "15"},
        {"window_start": "09:00", "window_end": "nine", "granularity": "15"},
        {"window_start": "09:00", "granularity": "15"},
        {"window_start": "09:00", "window_end": "17:00", "granularity": "7"},
    ]
    for data in bad_posts:
        resp = client.post(f"/schedule/{sid}/config", data={"csrf_token": csrf_token, **data})
        assert resp.status_code == 302, data
        page = client.get(f"/schedule/{sid}")
        assert b"That time window or granularity is not valid." in page.data
        assert b'data-slot="09:00"' in page.data


def test_config_for_unknown_schedule_is_404(client, csrf_token):
    resp = client.post(
        "/schedule/ghost/config",
        data={"csrf_token": csrf_token, "window_start": "08:00", "window_end": "10:00", "granularity": "60"},
    )
    assert resp.status_code == 404


def test_create_schedule_rejects_malformed_window(client, csrf_token):
    for start, end in [("bogus", "17:00"), ("09:00", "25:99"), ("", "")]:
        resp = client.post(
            "/schedules",
            data={"csrf_token": csrf_token, "title": "X", "window_start": start, "window_end": end},
        )
        assert resp.status_code == 400, (start, end)
        assert b"Create Schedule" in resp.data


def test_session_cookie_stays_small_for_busy_schedules(app, client, make_schedule):
    schedules = [make_schedule(title="Busy"), make_schedule(title="Busier")]
    with app.app_context():
        store = ScheduleStore()
        for sid in schedules:
            for i in range(90):
                store.create_appointment(sid, f"Guest {i}", i * 5, i * 5 + 5)

    for sid in schedules:
        first = client.get(f"/api/schedules/{sid}")
        assert len(first.get_json()["colors"]) == 90
        for cookie in first.headers.getlist("Set-Cookie"):
            assert len(cookie) < 4093
        again = client.get(f"/api/schedules/{sid}")
        assert again.get_json()["colors"] == first.get_json()["colors"]

    with client.session_transaction() as sess:
        assert set(sess.keys()) <= {"visitor", "csrf_token", "_flashes", "_permanent"}


def test_colors_of_appointments_deleted_elsewhere_are_dropped(app, client, csrf_token, make_schedule, get_csrf_token):
    sid = make_schedule()
    _book(client, sid, csrf_token, name="Alice", start="09:00")
    _book(client, sid, csrf_token, name="Bob", start="10:00")
    assert len(client.get(f"/api/schedules/{sid}").get_json()["colors"]) == 2

    other = app.test_client()
    other_token = get_csrf_token(other.get("/"))
    other.delete(f"/api/schedules/{sid}/appointments", headers={"X-CSRFToken": other_token})

    assert client.get(f"/api/schedules/{sid}").get_json()["colors"] == {}
    _book(client, sid, csrf_token, name="Carol", start="11:00")
    snapshot = client.get(f"/api/schedules/{sid}").get_json()
    assert list(snapshot["colors"]) == [snapshot["appointments"][0]["id"]]
