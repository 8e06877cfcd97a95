from __future__ import annotations

import random
from typing import Optional

from app.assessments.iota_v1.compiler import compile_center_results
from app.core.config import Settings, settings as default_settings
from app.core.logging import correlation_context, get_logger
from app.data.reference_store import ReferenceStore
from app.schemas.score import ScoreRequest, ScoreResult

logger = get_logger("iota.services.scoring", component="services")

__all__ = ["score_center"]


def score_center(
    payload: ScoreRequest,
    store: ReferenceStore,
    *,
    config: Optional[Settings] = None,
    rng: Optional[random.Random] = None,
) -> ScoreResult:
    """Score a proposal against the store's current snapshot.

    Every call ranks against whatever snapshot is installed at that moment,
    so a refresh between calls is picked up without any extra coordination.
    Raises :class:`ReferenceDataUnavailableError` only when nothing has been
    loaded and no source is configured.
    """
    config = config or default_settings
    snapshot = store.ensure_loaded()
    with correlation_context():
        logger.debug(
            "score_requested",
            extra={
                "structured_data": {
                    "center_code": payload.center_code,
                    "reference_version": snapshot.version,
                }
            },
        )
        return compile_center_results(
            payload,
            snapshot.summary,
            snapshot.graft,
            rng=rng,
            bins=config.distribution_bins,
            detail_cap=config.payment_detail_cap,
        )
