from __future__ import annotations

import pytest
from httpx import AsyncClient

from conftest import create_board, create_card, register


@pytest.mark.anyio
async def test_create_column_appends_at_next_position(client: AsyncClient) -> None:
  alice = await register(client, "alice")
  board = await create_board(client, alice["headers"])

  res = await client.post(
    f"/api/columns/board/{board['id']}",
    json={"title": "Review", "color": "#abcdef", "limit": 3},
    headers=alice["headers"],
  )
  assert res.status_code == 201, res.text
  col = res.json()
  assert (col["title"], col["position"], col["color"], col["limit"]) == ("Review", 3, "#abcdef", 3)
  assert col["board"] == board["id"]

  res = await client.get(f"/api/boards/{board['id']}", headers=alice["headers"])
  assert [c["id"] for c in res.json()["columns"]][-1] == col["id"]


@pytest.mark.anyio
async def test_column_limit_is_not_enforced(client: AsyncClient) -> None:
  alice = await register(client, "alice")
  board = await create_board(client, alice["headers"])
  col = (
    await client.post(f"/api/columns/board/{board['id']}", json={"title": "WIP", "limit": 1}, headers=alice["headers"])
  ).json()

  for i in range(3):
    await create_card(client, alice["headers"], col["id"], f"card {i}")
  res = await client.get(f"/api/columns/board/{board['id']}", headers=alice["headers"])
  wip = next(c for c in res.json() if c["id"] == col["id"])
  assert len(wip["cards"]) == 3 and wip["limit"] == 1


@pytest.mark.anyio
async def test_update_column(client: AsyncClient) -> None:
  alice = await register(client, "alice")
  carol = await register(client, "carol")
  board = await create_board(client, alice["headers"])
  col_id = board["columns"][0]["id"]

  res = await client.put(f"/api/columns/{col_id}", json={"title": "Backlog", "limit": 5}, headers=alice["headers"])
  assert res.status_code == 200, res.text
  assert (res.json()["title"], res.json()["limit"]) == ("Backlog", 5)

  res = await client.put(f"/api/columns/{col_id}", json={"limit": None}, headers=alice["headers"])
  assert res.status_code == 200, res.text
  assert res.json()["limit"] is None
  assert res.json()["title"] == "Backlog"

  res = await client.put(f"/api/columns/{col_id}", json={"board": "elsewhere"}, headers=alice["headers"])
  assert res.status_code == 422

  res = await client.put(f"/api/columns/{col_id}", json={"title": "Mine"}, headers=carol["headers"])
  assert res.status_code == 403

  res = await client.put("/api/columns/missing", json={"title": "x"}, headers=alice["headers"])
  assert res.status_code == 404
  assert res.json()["detail"] == "Column not found"


@pytest.mark.anyio
async def test_delete_column_removes_cards_and_board_reference(client: AsyncClient) -> None:
  alice = await register(client, "alice")
  board = await create_board(client, alice["headers"])
  col_id = board["columns"][1]["id"]
  card = await create_card(client, alice["headers"], col_id, "doomed")

  res = await client.delete(f"/api/columns/{col_id}", headers=alice["headers"])
  assert res.status_code == 200, res.text
  assert res.json() == {"message": "Column deleted successfully"}

  assert (await client.get(f"/api/cards/{card['id']}", headers=alice["headers"])).status_code == 404
  detail = (await client.get(f"/api/boards/{board['id']}", headers=alice["headers"])).json()
  assert [c["title"] for c in detail["columns"]] == ["To Do", "Done"]
  listed = (await client.get("/api/boards", headers=alice["headers"])).json()
  assert col_id not in listed[0]["columns"]


@pytest.mark.anyio
async def test_reorder_columns_is_best_effort(client: AsyncClient) -> None:
  alice = await register(client, "alice")
  board = await create_board(client, alice["headers"])
  other = await create_board(client, alice["headers"], "Other")
  todo, doing, done = (c["id"] for c in board["columns"])
  foreign = other["columns"][0]["id"]

  res = await client.put(
    f"/api/columns/board/{board['id']}/reorder",
    json={
      "columnOrders": [
        {"id": done, "position": 0},
        {"id": todo, "position": 2},
        {"id": "missing", "position": 7},
        {"id": foreign, "position": 9},
      ]
    },
    headers=alice["headers"],
  )
  assert res.status_code == 200, res.text
  assert [(c["id"], c["position"]) for c in res.json()] == [(done, 0), (doing, 1), (todo, 2)]

  untouched = (await client.get(f"/api/columns/board/{other['id']}", headers=alice["headers"])).json()
  assert untouched[0]["id"] == foreign and untouched[0]["position"] == 0
