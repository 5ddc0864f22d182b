"""Stream calculation snapshots: split a calculator run into per-platform rows."""

import json
import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from royally_tuned.models.stream_calculation import StreamCalculation
from royally_tuned.schemas.calculation import CalculationPayload

logger = logging.getLogger(__name__)


def build_calculation_rows(user_id: uuid.UUID, payload: CalculationPayload) -> list[StreamCalculation]:
    """One row per platform; earnings are the median total prorated by stream share."""
    totals = payload.totals or {}
    median = float(totals.get("median") or 0)
    denominator = max(1.0, float(payload.total_streams or 1))
    notes = json.dumps({"totals": payload.totals})

    rows = []
    for platform, raw_streams in payload.platform_streams.items():
        streams = float(raw_streams or 0)
        rows.append(
            StreamCalculation(
                user_id=user_id,
                platform=platform,
                streams=int(streams),
                rate_per_stream=median / denominator,
                estimated_earnings=median * (streams / denominator),
                notes=notes,
            )
        )
    return rows


async def save_calculation(
    db: AsyncSession, user_id: uuid.UUID, payload: CalculationPayload
) -> list[StreamCalculation]:
    rows = build_calculation_rows(user_id, payload)
    db.add_all(rows)
    await db.flush()
    logger.info("Saved %d stream calculation rows for user %s", len(rows), user_id)
    return rows
