from __future__ import annotations

import pytest

pytestmark = pytest.mark.integration


async def _create_ticket(client, headers, **overrides) -> dict:
    payload = {"subject": "Help", "description": "X", "priority": "normal"}
    payload.update(overrides)
    response = await client.post("/api/tickets", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def test_create_ticket_starts_open_with_mirrored_message(app_client, visitor_headers, users):
    ticket = await _create_ticket(app_client, visitor_headers)

    assert ticket["status"] == "open"
    assert ticket["assigneeId"] is None
    assert ticket["requesterId"] == users["visitor"].id
    assert ticket["priority"] == "normal"

    messages = await app_client.get(f"/api/tickets/{ticket['id']}/messages", headers=visitor_headers)
    assert messages.status_code == 200
    data = messages.json()["data"]
    assert len(data) == 1
    assert data[0]["content"] == "X"
    assert data[0]["isFromAI"] is False
    assert data[0]["author"] == {"id": users["visitor"].id, "name": "Vera Visitor", "role": "visitor"}


async def test_requests_without_identity_are_rejected(app_client, users):
    assert (await app_client.get("/api/tickets")).status_code == 401
    unknown = await app_client.get("/api/tickets", headers={"X-User-Id": "nobody"})
    assert unknown.status_code == 401
    assert unknown.json()["error"]["code"] == "unauthorized"


async def test_ticket_validation_errors_are_400(app_client, visitor_headers):
    response = await app_client.post("/api/tickets", json={"subject": "   ", "description": "X"}, headers=visitor_headers)
    assert response.status_code == 400
    body = response.json()
    assert body["error"]["code"] == "validation_error"
    assert body["error"]["details"]["errors"]

    bad_priority = await app_client.post(
        "/api/tickets",
        json={"subject": "Help", "description": "X", "priority": "urgent"},
        headers=visitor_headers,
    )
    assert bad_priority.status_code == 400


async def test_ownership_is_enforced(app_client, visitor_headers, other_headers, agent_headers):
    ticket = await _create_ticket(app_client, visitor_headers)

    assert (await app_client.get(f"/api/tickets/{ticket['id']}", headers=visitor_headers)).status_code == 200
    assert (await app_client.get(f"/api/tickets/{ticket['id']}", headers=other_headers)).status_code == 403
    assert (await app_client.get(f"/api/tickets/{ticket['id']}", headers=agent_headers)).status_code == 200

    denied = await app_client.post(
        f"/api/tickets/{ticket['id']}/messages",
        json={"content": "let me in"},
        headers=other_headers,
    )
    assert denied.status_code == 403
    assert (await app_client.get(f"/api/tickets/{ticket['id']}/files", headers=other_headers)).status_code == 403

    assert (await app_client.get("/api/tickets/9999", headers=agent_headers)).status_code == 404


async def test_ticket_listing_is_scoped_by_role(app_client, visitor_headers, other_headers, agent_headers, users):
    mine = await _create_ticket(app_client, visitor_headers, subject="Mine")
    await _create_ticket(app_client, other_headers, subject="Theirs")

    visitor_list = (await app_client.get("/api/tickets", headers=visitor_headers)).json()
    assert [item["id"] for item in visitor_list["data"]] == [mine["id"]]
    assert visitor_list["meta"]["count"] == 1

    agent_list = (await app_client.get("/api/tickets", headers=agent_headers)).json()["data"]
    assert len(agent_list) == 2

    await app_client.patch(
        f"/api/tickets/{mine['id']}/assign",
        json={"assigneeId": users["agent"].id},
        headers=agent_headers,
    )
    assigned = (await app_client.get("/api/tickets", params={"assignee": "me"}, headers=agent_headers)).json()["data"]
    assert [item["id"] for item in assigned] == [mine["id"]]

    await app_client.patch(f"/api/tickets/{mine['id']}/status", json={"status": "solved"}, headers=agent_headers)
    solved = (await app_client.get("/api/tickets", params={"status": "solved"}, headers=agent_headers)).json()["data"]
    assert [item["id"] for item in solved] == [mine["id"]]

    assert (await app_client.get("/api/tickets", params={"status": "closed"}, headers=agent_headers)).status_code == 400


async def test_status_change_is_agent_only_and_validated(app_client, visitor_headers, agent_headers):
    ticket = await _create_ticket(app_client, visitor_headers)
    url = f"/api/tickets/{ticket['id']}/status"

    forbidden = await app_client.patch(url, json={"status": "solved"}, headers=visitor_headers)
    assert forbidden.status_code == 403
    stored = (await app_client.get(f"/api/tickets/{ticket['id']}", headers=visitor_headers)).json()["data"]
    assert stored["status"] == "open"

    invalid = await app_client.patch(url, json={"status": "closed"}, headers=agent_headers)
    assert invalid.status_code == 400

    updated = await app_client.patch(url, json={"status": "pending"}, headers=agent_headers)
    assert updated.status_code == 200
    assert updated.json()["data"]["status"] == "pending"


async def test_visitor_reply_reopens_pending_ticket(app_client, visitor_headers, agent_headers):
    ticket = await _create_ticket(app_client, visitor_headers)
    ticket_url = f"/api/tickets/{ticket['id']}"
    await app_client.patch(f"{ticket_url}/status", json={"status": "pending"}, headers=agent_headers)

    agent_reply = await app_client.post(f"{ticket_url}/messages", json={"content": "Any update?"}, headers=agent_headers)
    assert agent_reply.status_code == 201
    assert agent_reply.json()["data"]["author"]["role"] == "agent"
    assert (await app_client.get(ticket_url, headers=agent_headers)).json()["data"]["status"] == "pending"

    visitor_reply = await app_client.post(f"{ticket_url}/messages", json={"content": "Here it is"}, headers=visitor_headers)
    assert visitor_reply.status_code == 201
    assert (await app_client.get(ticket_url, headers=agent_headers)).json()["data"]["status"] == "open"

    messages = (await app_client.get(f"{ticket_url}/messages", headers=visitor_headers)).json()["data"]
    assert [item["content"] for item in messages] == ["X", "Any update?", "Here it is"]


async def test_assignment_requires_agent_target(app_client, visitor_headers, agent_headers, users):
    ticket = await _create_ticket(app_client, visitor_headers)
    url = f"/api/tickets/{ticket['id']}/assign"

    assert (await app_client.patch(url, json={"assigneeId": users["agent"].id}, headers=visitor_headers)).status_code == 403
    assert (await app_client.patch(url, json={"assigneeId": users["other"].id}, headers=agent_headers)).status_code == 400
    assert (await app_client.patch(url, json={"assigneeId": 4242}, headers=agent_headers)).status_code == 404

    assigned = await app_client.patch(url, json={"assigneeId": users["agent"].id}, headers=agent_headers)
    assert assigned.status_code == 200
    assert assigned.json()["data"]["assigneeId"] == users["agent"].id

    cleared = await app_client.patch(url, json={"assigneeId": None}, headers=agent_headers)
    assert cleared.json()["data"]["assigneeId"] is None


async def test_file_metadata_round_trip(app_client, visitor_headers, agent_headers):
    ticket = await _create_ticket(app_client, visitor_headers)
    url = f"/api/tickets/{ticket['id']}/files"
    payload = {
        "filename": "receipt.pdf",
        "fileUrl": "https://files.example.com/receipt.pdf",
        "fileSize": 2048,
        "mimeType": "application/pdf",
    }

    created = await app_client.post(url, json=payload, headers=visitor_headers)
    assert created.status_code == 201
    assert created.json()["data"]["fileUrl"] == payload["fileUrl"]

    assert (await app_client.post(url, json={**payload, "fileSize": -1}, headers=visitor_headers)).status_code == 400

    listed = (await app_client.get(url, headers=agent_headers)).json()["data"]
    assert [item["filename"] for item in listed] == ["receipt.pdf"]


async def test_only_agents_can_post_ai_flagged_messages(app_client, visitor_headers, agent_headers):
    ticket = await _create_ticket(app_client, visitor_headers)
    url = f"/api/tickets/{ticket['id']}/messages"

    spoofed = await app_client.post(url, json={"content": "Refund approved", "isFromAI": True}, headers=visitor_headers)
    assert spoofed.status_code == 403

    drafted = await app_client.post(url, json={"content": "Suggested answer", "isFromAI": True}, headers=agent_headers)
    assert drafted.status_code == 201
    assert drafted.json()["data"]["isFromAI"] is True

    messages = (await app_client.get(url, headers=visitor_headers)).json()["data"]
    assert [item["content"] for item in messages] == ["X", "Suggested answer"]
