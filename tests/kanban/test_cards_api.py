"""
HTTP surface tests for boards, cards and team membership
"""
import pytest


def as_user(user) -> dict:
    return {"X-User-ID": str(user.id)}


@pytest.mark.asyncio
async def test_move_endpoint_returns_new_positions(client, board, make_card):
    # Arrange
    card_a = await make_card(board.ready, "Card A")
    card_b = await make_card(board.ready, "Card B")
    card_c = await make_card(board.doing, "Card C", assignee_id=board.lead.id)

    # Act
    response = await client.put(
        f"/api/v1/cards/{card_a.id}/move",
        json={"target_column_id": str(board.doing.id), "target_index": 0},
        headers=as_user(board.member),
    )

    # Assert
    assert response.status_code == 200
    data = response.json()
    assert data["column_id"] == str(board.doing.id)
    assert data["auto_assigned"] is True
    assert [(p["id"], p["position"]) for p in data["target_positions"]] == [
        (str(card_a.id), 0), (str(card_c.id), 1)
    ]
    assert [(p["id"], p["position"]) for p in data["source_positions"]] == [(str(card_b.id), 0)]

    snapshot = await client.get(f"/api/v1/boards/{board.board.id}", headers=as_user(board.member))
    doing = snapshot.json()["columns"][1]
    assert [c["id"] for c in doing["cards"]] == [str(card_a.id), str(card_c.id)]
    assert doing["cards"][0]["assignee_id"] == str(board.member.id)


@pytest.mark.asyncio
async def test_rejected_move_returns_error_envelope(client, board, make_card):
    card = await make_card(board.review, "Card", assignee_id=board.member.id)

    response = await client.put(
        f"/api/v1/cards/{card.id}/move",
        json={"target_column_id": str(board.done.id), "target_index": 0},
        headers=as_user(board.member),
    )

    assert response.status_code == 403
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == "AUTH_003"
    assert body["error"]["message"] == "Only team leads can approve cards to Done"


@pytest.mark.asyncio
async def test_wip_rejection_maps_to_conflict(client, board, make_card):
    card = await make_card(board.ready, "Card")
    await make_card(board.doing, "Doing 1", assignee_id=board.lead.id)
    await make_card(board.doing, "Doing 2", assignee_id=board.lead.id)

    response = await client.put(
        f"/api/v1/cards/{card.id}/move",
        json={"target_column_id": str(board.doing.id), "target_index": 0},
        headers=as_user(board.lead),
    )

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "BIZ_005"


@pytest.mark.asyncio
async def test_negative_index_is_a_validation_error(client, board, make_card):
    card = await make_card(board.ready, "Card")

    response = await client.put(
        f"/api/v1/cards/{card.id}/move",
        json={"target_column_id": str(board.doing.id), "target_index": -1},
        headers=as_user(board.member),
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_anonymous_requests_are_unauthorized(client, board, make_card):
    card = await make_card(board.ready, "Card")

    move = await client.put(
        f"/api/v1/cards/{card.id}/move",
        json={"target_column_id": str(board.doing.id), "target_index": 0},
    )
    membership = await client.get("/api/v1/teams/wings-25-26/membership")

    assert move.status_code == 401
    assert move.json()["error"]["code"] == "AUTH_001"
    assert membership.status_code == 401


@pytest.mark.asyncio
async def test_claim_submit_approve_flow(client, board, make_card):
    card = await make_card(board.ready, "Card")

    claim = await client.post(
        f"/api/v1/cards/{card.id}/claim",
        json={"board_id": str(board.board.id)},
        headers=as_user(board.member),
    )
    assert claim.status_code == 200
    assert claim.json()["column_id"] == str(board.doing.id)

    second_claim = await client.post(
        f"/api/v1/cards/{card.id}/claim",
        json={"board_id": str(board.board.id)},
        headers=as_user(board.other_member),
    )
    assert second_claim.status_code == 409
    assert second_claim.json()["error"]["message"] == "Card is already assigned"

    submit = await client.post(
        f"/api/v1/cards/{card.id}/submit-for-review", headers=as_user(board.member)
    )
    assert submit.status_code == 200
    assert submit.json()["column_id"] == str(board.review.id)

    approve = await client.post(f"/api/v1/cards/{card.id}/approve", headers=as_user(board.lead))
    assert approve.status_code == 200
    assert approve.json() == {
        "id": str(card.id),
        "column_id": str(board.review.id),
        "is_approved": True,
        "reviewer_id": str(board.lead.id),
    }


@pytest.mark.asyncio
async def test_create_update_delete_card(client, board):
    created = await client.post(
        "/api/v1/cards/",
        json={
            "column_id": str(board.ready.id),
            "title": "  Sand ribs ",
            "acceptance_criteria": "Ribs smooth",
            "team_id": str(board.team.id),
        },
        headers=as_user(board.member),
    )
    assert created.status_code == 200
    card = created.json()
    assert card["title"] == "Sand ribs"
    assert card["position"] == 0

    updated = await client.put(
        f"/api/v1/cards/{card['id']}",
        json={"priority": "P1"},
        headers=as_user(board.member),
    )
    assert updated.status_code == 200
    assert updated.json()["priority"] == "P1"
    assert updated.json()["title"] == "Sand ribs"

    deleted = await client.delete(f"/api/v1/cards/{card['id']}", headers=as_user(board.member))
    assert deleted.status_code == 200
    assert deleted.json() == {"success": True, "message": "Card deleted successfully"}

    snapshot = await client.get(f"/api/v1/boards/{board.board.id}", headers=as_user(board.owner))
    assert snapshot.json()["columns"][0]["cards"] == []


@pytest.mark.asyncio
async def test_create_card_with_invalid_priority_is_rejected(client, board):
    response = await client.post(
        "/api/v1/cards/",
        json={"column_id": str(board.ready.id), "title": "Card", "priority": "urgent"},
        headers=as_user(board.member),
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_create_card_from_template(client, board):
    response = await client.post(
        "/api/v1/cards/from-template",
        json={
            "column_id": str(board.ready.id),
            "template_id": "design",
            "team_id": str(board.team.id),
        },
        headers=as_user(board.lead),
    )

    assert response.status_code == 200
    assert response.json()["title"] == "Design Task"
    assert response.json()["task_type"] == "Design"


@pytest.mark.asyncio
async def test_unknown_board_is_not_found(client, board):
    response = await client.get(
        "/api/v1/boards/00000000-0000-0000-0000-000000000000", headers=as_user(board.owner)
    )

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "BIZ_001"


@pytest.mark.asyncio
async def test_team_membership_roles(client, board):
    lead = await client.get("/api/v1/teams/wings-25-26/membership", headers=as_user(board.lead))
    outsider = await client.get("/api/v1/teams/wings-25-26/membership", headers=as_user(board.outsider))
    missing = await client.get("/api/v1/teams/nope/membership", headers=as_user(board.lead))

    assert lead.json()["role"] == "LEAD"
    assert lead.json()["is_lead"] is True
    assert outsider.json()["role"] is None
    assert outsider.json()["is_lead"] is False
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_root_endpoints(client):
    root = await client.get("/")
    api_root = await client.get("/api/v1/")

    assert root.json()["success"] is True
    assert "cards" in api_root.json()["data"]["endpoints"]


@pytest.mark.asyncio
async def test_update_with_null_priority_is_rejected(client, board, make_card):
    card = await make_card(board.ready, "Card", priority="P1")

    response = await client.put(
        f"/api/v1/cards/{card.id}",
        json={"priority": None},
        headers=as_user(board.member),
    )
    snapshot = await client.get(f"/api/v1/boards/{board.board.id}", headers=as_user(board.member))

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VAL_001"
    assert snapshot.json()["columns"][0]["cards"][0]["priority"] == "P1"


@pytest.mark.asyncio
async def test_board_snapshot_hidden_from_unrelated_team(client, board, make_card):
    await make_card(board.ready, "Wings card")

    response = await client.get(f"/api/v1/boards/{board.board.id}", headers=as_user(board.outsider))

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "BIZ_001"
