from fastapi import status


def submit(client, headers, user, employee_ids, dates, destination="Cebu City"):
    payload = {"employeeIds": employee_ids, "dates": dates, "purpose": "Regional audit", "destination": destination}
    return client.post("/api/travel-requests", json=payload, headers=headers(user))


def test_submit_and_approve_travel(client, headers, hr_user, employee_a, employee_b):
    response = submit(client, headers, hr_user, [employee_b.id, employee_a.id], ["2025-05-02", "2025-05-03"])

    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["status"] == "For Approval"
    assert data["employeeIds"] == sorted([employee_a.id, employee_b.id])
    assert "TR-" in data["travelNumber"]

    approved = client.put(f"/api/travel-requests/{data['id']}/status", json={"status": "Approved"}, headers=headers(hr_user))
    assert approved.status_code == 200
    assert approved.json()["status"] == "Approved"


def test_travel_without_employees_is_422(client, headers, hr_user):
    response = submit(client, headers, hr_user, [], ["2025-05-02"])
    assert response.status_code == 422
    assert response.json()["errors"][0]["code"] == "NO_EMPLOYEES"


def test_travel_with_unknown_employee_is_422(client, headers, hr_user, employee_a):
    response = submit(client, headers, hr_user, [employee_a.id, 9999], ["2025-05-02"])
    assert response.status_code == 422
    assert response.json()["errors"][0]["code"] == "UNKNOWN_EMPLOYEE"


def test_overlapping_travel_conflicts(client, headers, hr_user, employee_a, employee_b):
    first = submit(client, headers, hr_user, [employee_a.id], ["2025-05-02"]).json()
    client.put(f"/api/travel-requests/{first['id']}/status", json={"status": "Approved"}, headers=headers(hr_user))

    response = submit(client, headers, hr_user, [employee_a.id, employee_b.id], ["2025-05-02"])

    assert response.status_code == 409
    assert response.json()["errors"][0]["details"]["employee_ids"] == [employee_a.id]


def test_availability_endpoint(client, headers, hr_user, employee_a, employee_b):
    first = submit(client, headers, hr_user, [employee_a.id], ["2025-05-02"]).json()
    client.put(f"/api/travel-requests/{first['id']}/status", json={"status": "Approved"}, headers=headers(hr_user))

    response = client.get(
        f"/api/availability?employeeIds={employee_a.id},{employee_b.id}&dates=2025-05-01&dates=05/02/2025",
        headers=headers(hr_user),
    )
    assert response.status_code == 200
    data = response.json()
    assert data["unavailable"] == [employee_a.id]
    assert data["conflicts"] == [{"employeeId": employee_a.id, "dates": ["2025-05-02"]}]

    excluded = client.get(
        f"/api/availability?employeeIds={employee_a.id}&dates=2025-05-02&excludeRequestId={first['id']}",
        headers=headers(hr_user),
    ).json()
    assert excluded["unavailable"] == []


def test_availability_rejects_malformed_employee_id(client, headers, hr_user, employee_a):
    response = client.get(
        f"/api/availability?employeeIds={employee_a.id},abc&dates=2025-05-02",
        headers=headers(hr_user),
    )
    assert response.status_code == 422
    error = response.json()["errors"][0]
    assert error["code"] == "INVALID_EMPLOYEE_ID"
    assert error["details"] == {"value": "abc"}


def test_liaison_flag_gates_portal_travel(client, headers, hr_user, portal_user, employee_a):
    denied = submit(client, headers, portal_user, [employee_a.id], ["2025-05-02"])
    assert denied.status_code == 403

    updated = client.put(
        "/api/employees/travel-liaisons",
        json={"employeeIds": [employee_a.id], "canCreateTravel": True},
        headers=headers(hr_user),
    )
    assert updated.json()[0]["canCreateTravel"] is True

    allowed = submit(client, headers, portal_user, [employee_a.id], ["2025-05-02"])
    assert allowed.status_code == 201
    assert allowed.json()["isPortalOrigin"] is True

    mine = client.get("/api/travel-requests/mine", headers=headers(portal_user)).json()
    assert [r["id"] for r in mine] == [allowed.json()["id"]]


def test_staff_travel_cannot_be_returned(client, headers, hr_user, employee_a):
    created = submit(client, headers, hr_user, [employee_a.id], ["2025-05-02"]).json()
    response = client.put(
        f"/api/travel-requests/{created['id']}/status",
        json={"status": "Returned", "remarks": "fix destination"},
        headers=headers(hr_user),
    )
    assert response.status_code == 409
    assert response.json()["errors"][0]["code"] == "INVALID_TRANSITION"


def test_travel_list_filters(client, headers, hr_user, employee_a, employee_b):
    submit(client, headers, hr_user, [employee_a.id], ["2025-05-02"])
    submit(client, headers, hr_user, [employee_b.id], ["2025-06-10"], destination="Baguio")

    by_participant = client.get(f"/api/travel-requests?participant={employee_b.id}", headers=headers(hr_user)).json()
    by_range = client.get("/api/travel-requests?dateFrom=2025-05-01&dateTo=2025-05-31", headers=headers(hr_user)).json()

    assert [r["destination"] for r in by_participant] == ["Baguio"]
    assert [r["employeeIds"] for r in by_range] == [[employee_a.id]]


def test_employee_directory_and_notifications(client, headers, hr_user, portal_user, employee_a, leave_types):
    directory = client.get("/api/employees", headers=headers(hr_user)).json()
    assert {"id": employee_a.id, "idNo": "2019-001", "name": "Dela Cruz, Juan S.",
            "department": "Finance", "canCreateTravel": False} in directory

    client.post(
        "/api/leave-requests",
        json={"employeeId": employee_a.id, "categoryId": leave_types["VL"].id, "dates": ["2025-03-10"]},
        headers=headers(portal_user),
    )
    notifications = client.get("/api/notifications", headers=headers(portal_user)).json()
    assert len(notifications) == 1
    assert notifications[0]["isRead"] is False

    read = client.put(f"/api/notifications/{notifications[0]['id']}/read", headers=headers(portal_user))
    assert read.json()["isRead"] is True


def test_hr_balance_adjustment(client, headers, hr_user, employee_b):
    response = client.put(f"/api/employees/{employee_b.id}/balances/vacation", json={"amount": "7.5"}, headers=headers(hr_user))
    assert response.status_code == 200
    assert response.json()["balances"]["Vacation"] in ("7.500", "7.5", 7.5)

    bad = client.put(f"/api/employees/{employee_b.id}/balances/maternity", json={"amount": "1"}, headers=headers(hr_user))
    assert bad.status_code == 422
