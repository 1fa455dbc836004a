# clinic_backend/app/routers/blocks.py
# Admin only. No PATCH: a block is deleted and recreated instead.

from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..auth import require_admin
from ..database import get_db
from ..schemas.blocks import BlockCreate, BlockRead
from ..services.booking import create_block, delete_block, list_blocks

router = APIRouter(prefix="/admin/blocks", tags=["blocks"])


@router.get("", response_model=list[BlockRead])
def list_blocks_endpoint(
    date_from: datetime | None = Query(None, alias="from"),
    date_to: datetime | None = Query(None, alias="to"),
    _admin: int | None = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return list_blocks(db, date_from, date_to)


@router.post("", response_model=BlockRead, status_code=status.HTTP_201_CREATED)
def create_block_endpoint(
    data: BlockCreate,
    admin_id: int | None = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return create_block(
        db,
        starts_at=data.starts_at,
        duration_min=data.duration_min,
        note=data.note,
        created_by_user_id=admin_id,
    )


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_block_endpoint(
    id: int,
    _admin: int | None = Depends(require_admin),
    db: Session = Depends(get_db),
):
    delete_block(db, id)
