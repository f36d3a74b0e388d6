# sales_analytics/main.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from .config import settings
from .database import SessionLocal
from .fetcher import AggregateFetcher, FetchError, SqlAlchemyFetcher
from .logging_config import configure_logging
from .schemas import (
    Envelope,
    ErrorResponse,
    GeneralAnalytics,
    PaymentBreakdown,
    SalesAnalytics,
    SellerRanking,
)
from .service import AnalyticsService

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Merchant Sales Analytics API",
    description="Revenue trends and best/worst sellers for a merchant's own sales."
)

# Dependency function for the datastore fetcher
def get_fetcher():
    yield SqlAlchemyFetcher(SessionLocal)

def get_service(fetcher: AggregateFetcher = Depends(get_fetcher)) -> AnalyticsService:
    return AnalyticsService(fetcher, max_workers=settings.ANALYTICS_MAX_WORKERS)

def get_current_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    """
    The user id is resolved by the authentication layer in front of this
    service and forwarded in the X-User-Id header.
    """
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return x_user_id

@app.exception_handler(FetchError)
async def fetch_error_handler(request: Request, exc: FetchError):
    logger.error("Analytics request %s failed: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content=ErrorResponse(error="Internal Server Error").model_dump())

# This is the route for the root URL "/"
@app.get("/")
def read_root():
    return {"message": "Welcome to the Merchant Sales Analytics API"}

@app.get("/health", response_class=PlainTextResponse)
def health():
    return "OK"

router = APIRouter(
    prefix="/analytics",
    tags=["analytics"],
    responses={500: {"model": ErrorResponse}},
)

@router.get("/sales", response_model=Envelope[SalesAnalytics])
def get_sales_analytics(
    granularity: Optional[str] = Query(None, alias="filter"),
    user_id: str = Depends(get_current_user_id),
    service: AnalyticsService = Depends(get_service),
):
    """
    Returns the gap-filled revenue series and the period-over-period change.
    - **filter**: week, month or year (anything else is treated as year)
    """
    return Envelope[SalesAnalytics](data=service.sales_analytics(user_id, granularity))

@router.get("/general", response_model=Envelope[GeneralAnalytics])
def get_general_analytics(
    granularity: Optional[str] = Query("month", alias="filter"),
    user_id: str = Depends(get_current_user_id),
    service: AnalyticsService = Depends(get_service),
):
    """
    Returns the best and worst selling product.
    - **filter**: week (7 days), month (30 days) or year (365 days)
    """
    return Envelope[GeneralAnalytics](data=service.general_analytics(user_id, granularity))

@router.get("/top-selling", response_model=Envelope[SellerRanking])
def get_top_selling(
    granularity: Optional[str] = Query("month", alias="filter"),
    limit: int = Query(10, ge=1, le=100),
    user_id: str = Depends(get_current_user_id),
    service: AnalyticsService = Depends(get_service),
):
    return Envelope[SellerRanking](
        data=service.ranked_sellers(user_id, granularity, descending=True, limit=limit)
    )

@router.get("/low-selling", response_model=Envelope[SellerRanking])
def get_low_selling(
    granularity: Optional[str] = Query("month", alias="filter"),
    limit: int = Query(10, ge=1, le=100),
    user_id: str = Depends(get_current_user_id),
    service: AnalyticsService = Depends(get_service),
):
    return Envelope[SellerRanking](
        data=service.ranked_sellers(user_id, granularity, descending=False, limit=limit)
    )

@router.get("/payment-breakdown", response_model=Envelope[PaymentBreakdown])
def get_payment_breakdown(
    days: int = Query(30, ge=1, le=3650),
    user_id: str = Depends(get_current_user_id),
    service: AnalyticsService = Depends(get_service),
):
    """Revenue and transaction count per payment method over the last `days` days."""
    return Envelope[PaymentBreakdown](data=service.payment_breakdown(user_id, days=days))

app.include_router(router)
