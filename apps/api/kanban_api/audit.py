from __future__ import annotations

import json
import logging
from typing import Any

from fastapi.encoders import jsonable_encoder

logger = logging.getLogger("kanban_api.audit")


def write_audit(
  *,
  event_type: str,
  entity_type: str,
  entity_id: str | None,
  board_id: str | None = None,
  card_id: str | None = None,
  actor_id: str | None = None,
  payload: dict[str, Any] | None = None,
) -> None:
  safe_payload = jsonable_encoder(payload or {})
  logger.info(
    "%s %s=%s board=%s card=%s actor=%s payload=%s",
    event_type,
    entity_type,
    entity_id,
    board_id,
    card_id,
    actor_id,
    json.dumps(safe_payload, sort_keys=True),
  )
