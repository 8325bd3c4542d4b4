from __future__ import annotations

import pytest
from httpx import AsyncClient

from conftest import create_board, create_card, register


async def _column_card_ids(client: AsyncClient, headers: dict[str, str], board_id: str) -> dict[str, list[str]]:
  res = await client.get(f"/api/boards/{board_id}", headers=headers)
  assert res.status_code == 200, res.text
  return {c["title"]: [card["id"] for card in c["cards"]] for c in res.json()["columns"]}


@pytest.mark.anyio
async def test_create_card_defaults_and_positions(client: AsyncClient) -> None:
  alice = await register(client, "alice")
  bob = await register(client, "bob")
  board = await create_board(client, alice["headers"], members=[bob["id"]])
  to_do = board["columns"][0]["id"]

  first = await create_card(client, alice["headers"], to_do, "Write tests")
  assert first["position"] == 0
  assert first["priority"] == "medium"
  assert first["isCompleted"] is False
  assert (first["column"], first["board"]) == (to_do, board["id"])

  second = await create_card(
    client,
    bob["headers"],
    to_do,
    "Ship it",
    priority="urgent",
    dueDate="2030-01-15",
    assignedTo=[alice["id"], bob["id"]],
    labels=[{"name": "release", "color": "#ff0000"}],
  )
  assert second["position"] == 1
  assert second["priority"] == "urgent"
  assert second["dueDate"].startswith("2030-01-15")
  assert [u["username"] for u in second["assignedTo"]] == ["alice", "bob"]
  assert second["labels"] == [{"name": "release", "color": "#ff0000"}]

  res = await client.get(f"/api/cards/column/{to_do}", headers=alice["headers"])
  assert [c["id"] for c in res.json()] == [first["id"], second["id"]]

  res = await client.post(f"/api/cards/column/{to_do}", json={"title": "x", "priority": "asap"}, headers=alice["headers"])
  assert res.status_code == 422

  res = await client.post(f"/api/cards/column/{to_do}", json={"title": "x", "assignedTo": ["ghost"]}, headers=alice["headers"])
  assert res.status_code == 400
  assert res.json()["detail"] == "Assigned user not found"

  res = await client.post("/api/cards/column/missing", json={"title": "x"}, headers=alice["headers"])
  assert res.status_code == 404
  assert res.json()["detail"] == "Column not found"


@pytest.mark.anyio
async def test_move_card_between_columns(client: AsyncClient) -> None:
  alice = await register(client, "alice")
  bob = await register(client, "bob")
  board = await create_board(client, alice["headers"], "Sprint 1", members=[bob["id"]])
  to_do, in_progress = board["columns"][0]["id"], board["columns"][1]["id"]
  card = await create_card(client, alice["headers"], to_do, "Write tests")

  res = await client.put(
    f"/api/cards/{card['id']}/move",
    json={"newColumnId": in_progress, "newPosition": 0},
    headers=bob["headers"],
  )
  assert res.status_code == 200, res.text
  assert res.json()["column"] == in_progress
  assert res.json()["position"] == 0

  columns = await _column_card_ids(client, alice["headers"], board["id"])
  assert columns["To Do"] == []
  assert columns["In Progress"] == [card["id"]]

  # Moving into the column it already sits in keeps a single entry.
  res = await client.put(f"/api/cards/{card['id']}/move", json={"newColumnId": in_progress, "newPosition": 4}, headers=alice["headers"])
  assert res.status_code == 200, res.text
  assert res.json()["position"] == 4
  columns = await _column_card_ids(client, alice["headers"], board["id"])
  assert columns["In Progress"] == [card["id"]]


@pytest.mark.anyio
async def test_move_card_error_ordering(client: AsyncClient) -> None:
  alice = await register(client, "alice")
  carol = await register(client, "carol")
  board = await create_board(client, alice["headers"])
  other = await create_board(client, alice["headers"], "Other")
  card = await create_card(client, alice["headers"], board["columns"][0]["id"], "Stay home")
  url = f"/api/cards/{card['id']}/move"

  res = await client.put("/api/cards/missing/move", json={"newColumnId": "missing"}, headers=alice["headers"])
  assert res.status_code == 404
  assert res.json()["detail"] == "Card not found"

  res = await client.put(url, json={"newColumnId": "missing"}, headers=carol["headers"])
  assert res.status_code == 404
  assert res.json()["detail"] == "Target column not found"

  res = await client.put(url, json={"newColumnId": board["columns"][2]["id"]}, headers=carol["headers"])
  assert res.status_code == 403

  res = await client.put(url, json={"newColumnId": other["columns"][0]["id"]}, headers=alice["headers"])
  assert res.status_code == 400
  assert res.json()["detail"] == "Target column belongs to a different board"


@pytest.mark.anyio
async def test_update_card_allow_list(client: AsyncClient) -> None:
  alice = await register(client, "alice")
  board = await create_board(client, alice["headers"])
  card = await create_card(client, alice["headers"], board["columns"][0]["id"], "Draft", dueDate="2030-05-01T12:00:00Z")
  url = f"/api/cards/{card['id']}"

  for field, value in (("column", board["columns"][1]["id"]), ("board", "x"), ("position", 9), ("comments", [])):
    res = await client.put(url, json={field: value}, headers=alice["headers"])
    assert res.status_code == 422, field

  res = await client.put(
    url,
    json={
      "title": "Final",
      "description": "ready",
      "priority": "high",
      "isCompleted": True,
      "checklist": [{"text": "a"}, {"text": "b", "completed": True}],
      "attachments": [{"name": "spec.pdf", "url": "https://files.example.com/spec.pdf"}],
    },
    headers=alice["headers"],
  )
  assert res.status_code == 200, res.text
  body = res.json()
  assert (body["title"], body["description"], body["priority"], body["isCompleted"]) == ("Final", "ready", "high", True)
  assert body["checklist"] == [{"text": "a", "completed": False}, {"text": "b", "completed": True}]
  assert body["attachments"][0]["name"] == "spec.pdf"
  assert body["attachments"][0]["uploadedAt"] is not None
  assert body["dueDate"].startswith("2030-05-01")

  res = await client.put(url, json={"dueDate": None}, headers=alice["headers"])
  assert res.status_code == 200, res.text
  assert res.json()["dueDate"] is None
  assert res.json()["title"] == "Final"


@pytest.mark.anyio
async def test_comments_and_checklist(client: AsyncClient) -> None:
  alice = await register(client, "alice")
  bob = await register(client, "bob")
  board = await create_board(client, alice["headers"], members=[bob["id"]])
  card = await create_card(client, alice["headers"], board["columns"][0]["id"], "Discuss")
  url = f"/api/cards/{card['id']}"

  res = await client.post(f"{url}/comments", json={"text": "  "}, headers=bob["headers"])
  assert res.status_code == 400
  assert res.json()["detail"] == "Comment text is required"

  res = await client.post(f"{url}/comments", json={"text": "On it"}, headers=bob["headers"])
  assert res.status_code == 200, res.text
  [comment] = res.json()["comments"]
  assert comment["text"] == "On it"
  assert comment["user"]["username"] == "bob"
  assert comment["createdAt"]

  res = await client.put(url, json={"checklist": [{"text": "one"}, {"text": "two"}]}, headers=alice["headers"])
  assert res.status_code == 200, res.text

  res = await client.put(f"{url}/checklist/1", json={"completed": True}, headers=bob["headers"])
  assert res.status_code == 200, res.text
  assert [i["completed"] for i in res.json()["checklist"]] == [False, True]

  before = res.json()
  for index in (5, -1):
    res = await client.put(f"{url}/checklist/{index}", json={"completed": True}, headers=alice["headers"])
    assert res.status_code == 200, res.text
    assert res.json()["checklist"] == before["checklist"]


@pytest.mark.anyio
async def test_delete_card_pulls_it_from_column(client: AsyncClient) -> None:
  alice = await register(client, "alice")
  carol = await register(client, "carol")
  board = await create_board(client, alice["headers"], isPublic=True)
  to_do = board["columns"][0]["id"]
  keep = await create_card(client, alice["headers"], to_do, "keep")
  drop = await create_card(client, alice["headers"], to_do, "drop")

  res = await client.get(f"/api/cards/{drop['id']}", headers=carol["headers"])
  assert res.status_code == 200, res.text

  res = await client.delete(f"/api/cards/{drop['id']}", headers=carol["headers"])
  assert res.status_code == 403

  res = await client.delete(f"/api/cards/{drop['id']}", headers=alice["headers"])
  assert res.status_code == 200, res.text
  assert res.json() == {"message": "Card deleted successfully"}

  columns = await _column_card_ids(client, alice["headers"], board["id"])
  assert columns["To Do"] == [keep["id"]]
  assert (await client.get(f"/api/cards/{drop['id']}", headers=alice["headers"])).status_code == 404
