from fastapi import APIRouter, Depends, Path

from app.data.reference_store import ReferenceStore, get_reference_store
from app.schemas.center import CenterProfile
from app.services.centers import build_center_profile

router = APIRouter(prefix="/centers", tags=["centers"])


@router.get("/{code}", response_model=CenterProfile)
def get_center_profile(
    code: str = Path(min_length=1, max_length=16),
    store: ReferenceStore = Depends(get_reference_store),
) -> CenterProfile:
    """Prefill data and participation warning for a center code."""
    return build_center_profile(store.ensure_loaded(), code)
