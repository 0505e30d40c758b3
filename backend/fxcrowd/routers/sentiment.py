from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from fxcrowd.config import settings
from fxcrowd.core import sentiment
from fxcrowd.db import get_db
from fxcrowd.models import now_utc
from fxcrowd.schemas import HistoryOut, OverviewOut, SentimentOut

router = APIRouter(prefix="/api/v1/sentiment", tags=["sentiment"])

@router.get("", response_model=list[SentimentOut])
def list_sentiment(
    asset_class: str | None = Query(None),
    source: str | None = Query(None),
    search: str | None = Query(None),
    sort_by: str = Query("symbol"),
    sort_order: str = Query("asc", pattern="^(asc|desc)$"),
    db: Session = Depends(get_db),
):
    try:
        return sentiment.list_sentiment(
            db,
            now_utc(),
            settings.sentiment_freshness_hours,
            asset_class=asset_class,
            source=source,
            search=search,
            sort_by=sort_by,
            sort_order=sort_order,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@router.get("/instrument", response_model=SentimentOut)
def get_instrument(symbol: str = Query(..., min_length=1), db: Session = Depends(get_db)):
    item = sentiment.instrument_sentiment(db, symbol, now_utc(), settings.sentiment_freshness_hours)
    if item is None:
        raise HTTPException(status_code=404, detail=f"No sentiment data for {symbol}")
    return item

@router.get("/history", response_model=HistoryOut)
def get_history(
    symbol: str = Query(..., min_length=1),
    interval: str = Query("daily", pattern="^(hourly|daily)$"),
    range_: int | None = Query(None, alias="range", ge=1, le=24 * 30),
    db: Session = Depends(get_db),
):
    history = sentiment.sentiment_history(db, symbol, now_utc(), interval, range_)
    if history is None:
        raise HTTPException(status_code=404, detail=f"No history for {symbol}")
    return history

@router.get("/overview", response_model=OverviewOut)
def get_overview(db: Session = Depends(get_db)):
    return sentiment.market_overview(db, now_utc(), settings.sentiment_freshness_hours)
