from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from bidboard.database import get_db
from bidboard.services import analytics

router = APIRouter(prefix="/analytics", tags=["analytics"])


def _check_range(start_date: Optional[date], end_date: Optional[date]) -> None:
    if start_date and end_date and start_date > end_date:
        raise HTTPException(status_code=400, detail="start_date must be on or before end_date")


@router.get("/status-distribution")
def get_status_distribution(db: Session = Depends(get_db)):
    return analytics.status_distribution(db)


@router.get("/vendor-response")
def get_vendor_response(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
):
    _check_range(start_date, end_date)
    return analytics.vendor_response_metrics(db, start_date, end_date)


@router.get("/bid-completion")
def get_bid_completion(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
):
    _check_range(start_date, end_date)
    return analytics.bid_completion(db, start_date, end_date)


@router.get("/vendor-performance")
def get_vendor_performance(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
):
    _check_range(start_date, end_date)
    return analytics.vendor_performance(db, start_date, end_date)


@router.get("/response-time-distribution")
def get_response_time_distribution(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
):
    _check_range(start_date, end_date)
    return analytics.response_time_distribution(db, start_date, end_date)


@router.get("/summary")
def get_summary(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
):
    """KPI cards: bid totals, completion time, on-time and vendor response rates."""
    _check_range(start_date, end_date)
    return analytics.analytics_summary(db, start_date, end_date)


@router.get("/trends")
def get_trends(months: int = Query(analytics.DEFAULT_TREND_MONTHS, ge=1, le=24), db: Session = Depends(get_db)):
    return analytics.trends(db, months)
