# clinic_backend/app/routers/quote.py

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas.quote import QuoteRead, QuoteRequest
from ..services.booking import resolve_quote

router = APIRouter(prefix="/quote", tags=["quote"])


@router.post("", response_model=QuoteRead)
def create_quote(data: QuoteRequest, db: Session = Depends(get_db)):
    """Price a selection without booking it."""
    quote = resolve_quote(db, data.as_selections())
    return QuoteRead.model_validate(quote)
