"""Live quote endpoints."""

from fastapi import APIRouter, Depends, Query

from market_cache.api.deps import get_market_data_service
from market_cache.api.schemas import QuoteResponse
from market_cache.services import MarketDataService

router = APIRouter(prefix="/quotes", tags=["quotes"])


@router.get("/stock/{symbol}", response_model=QuoteResponse)
def get_stock_quote(
    symbol: str,
    service: MarketDataService = Depends(get_market_data_service),
):
    """Stock quote, served from the quote cache when younger than its TTL."""
    return QuoteResponse.model_validate(service.get_stock_quote(symbol))


@router.get("/crypto/{symbol}", response_model=QuoteResponse)
def get_crypto_quote(
    symbol: str,
    currency: str = Query(default="usd", min_length=3, max_length=5),
    service: MarketDataService = Depends(get_market_data_service),
):
    """Crypto quote in the requested currency."""
    return QuoteResponse.model_validate(service.get_crypto_quote(symbol, currency))
