from fastapi import APIRouter, Depends

from app.data.reference_store import ReferenceStore, get_reference_store
from app.schemas.score import ScoreRequest, ScoreResult
from app.services.scoring import score_center

router = APIRouter(prefix="/score", tags=["score"])


@router.post("/center", response_model=ScoreResult)
def score_center_endpoint(
    payload: ScoreRequest,
    store: ReferenceStore = Depends(get_reference_store),
) -> ScoreResult:
    return score_center(payload, store)
