from contextlib import asynccontextmanager
from decimal import Decimal
from typing import Optional, List, Dict, Any, Union

from fastapi import FastAPI, Depends, Request, Query, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, AliasChoices, Field
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_session, init_models
from config import (
    MIN_PURCHASE_AMOUNT,
    SCRATCH_THRESHOLD,
    STORE_INFO,
    load_tier_table,
)
from schemas import EligibilityResult, RedemptionOutcome, PlayerSession
from services.tier_service import resolve_tier
from services.order_service import create_order, list_recent_orders
from services.eligibility_service import validate_order
from services.redemption_service import RedemptionService
from services.player_service import get_player_session
from services.stats_service import get_play_stats, get_sales_stats
from errors import (
    RedemptionError,
    InvalidOrderError,
    BelowMinimumError,
    PersistenceError,
    OrderReferenceExhaustedError,
)
from logger import logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Некорректная конфигурация тиров не дает приложению запуститься
    tier_table = load_tier_table()
    app.state.redemption_service = RedemptionService(tier_table, MIN_PURCHASE_AMOUNT)
    await init_models()
    logger.info("Таблицы в базе данных созданы")
    logger.info(f"Сервис запущен, минимальная сумма покупки ₹{MIN_PURCHASE_AMOUNT}")
    yield
    logger.info("Сервис остановлен")


app = FastAPI(title="Scratch & Win", lifespan=lifespan)


def get_redemption_service(request: Request) -> RedemptionService:
    return request.app.state.redemption_service


class ValidateOrderRequest(BaseModel):
    order_id: str = Field(..., min_length=1, validation_alias=AliasChoices("orderId", "order_id"))
    email: str = Field(..., min_length=1)


class SessionRequest(BaseModel):
    player_id: Optional[str] = Field(
        None, validation_alias=AliasChoices("playerId", "userId", "player_id")
    )
    email: str = Field(..., min_length=1)


class ScratchRequest(BaseModel):
    player_id: str = Field(
        ..., min_length=1, validation_alias=AliasChoices("playerId", "userId", "player_id")
    )
    order_id: str = Field(..., min_length=1, validation_alias=AliasChoices("orderId", "order_id"))
    email: Optional[str] = None


class CreateOrderRequest(BaseModel):
    email: str = Field(..., min_length=1)
    amount: Decimal = Field(..., ge=0)
    items: Union[List[Dict[str, Any]], str, None] = None


@app.exception_handler(RedemptionError)
async def redemption_error_handler(request: Request, exc: RedemptionError):
    status_code = status.HTTP_400_BAD_REQUEST
    body: Dict[str, Any] = {"error": str(exc)}

    if isinstance(exc, InvalidOrderError):
        body = {"error": "Invalid order"}
    elif isinstance(exc, BelowMinimumError):
        body = {
            "error": f"Minimum purchase of ₹{exc.minimum} required. Your order: ₹{exc.amount}",
            "amount": str(exc.amount),
            "minimum": str(exc.minimum),
        }
    elif isinstance(exc, (PersistenceError, OrderReferenceExhaustedError)):
        logger.error(f"Ошибка сервера при обработке {request.url.path}: {exc!r}")
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        body = {"error": "Failed to save. Please reload the page and try again."}

    return JSONResponse(status_code=status_code, content=body)


@app.get("/api/config")
async def api_config():
    return {
        "minPurchaseAmount": str(MIN_PURCHASE_AMOUNT),
        "scratchThreshold": SCRATCH_THRESHOLD,
        "storeInfo": STORE_INFO,
    }


@app.post("/api/validate-order", response_model=EligibilityResult)
async def api_validate_order(
    payload: ValidateOrderRequest,
    service: RedemptionService = Depends(get_redemption_service),
    session: AsyncSession = Depends(get_session),
):
    """Проверка заказа перед розыгрышем"""
    return await validate_order(
        session, payload.order_id, payload.email, service.minimum_purchase_amount
    )


@app.post("/api/session", response_model=PlayerSession)
async def api_session(payload: SessionRequest, session: AsyncSession = Depends(get_session)):
    """Определение игрока по email"""
    return await get_player_session(session, payload.email, payload.player_id)


@app.post("/api/scratch", response_model=RedemptionOutcome)
async def api_scratch(
    payload: ScratchRequest,
    service: RedemptionService = Depends(get_redemption_service),
    session: AsyncSession = Depends(get_session),
):
    """Розыгрыш подарка (повторный запрос возвращает тот же подарок)"""
    return await service.redeem(session, payload.order_id, payload.player_id, payload.email)


@app.post("/api/create-order")
async def api_create_order(
    payload: CreateOrderRequest,
    service: RedemptionService = Depends(get_redemption_service),
    session: AsyncSession = Depends(get_session),
):
    """Регистрация заказа персоналом магазина"""
    minimum = service.minimum_purchase_amount
    order = await create_order(session, payload.email, payload.amount, minimum, payload.items)
    tier = resolve_tier(service.tier_table, order.amount)

    if order.is_eligible:
        message = f'Order created! Tell customer: "Your Order ID is {order.order_ref}"'
    else:
        message = f"Order created but not eligible. Minimum ₹{minimum} required."

    return {
        "success": True,
        "orderId": order.order_ref,
        "email": order.email,
        "amount": str(order.amount),
        "items": order.items,
        "isEligible": order.is_eligible,
        "tier": {
            "name": tier.name,
            "range": f"₹{tier.min_amount}-₹{tier.max_amount}",
        },
        "message": message,
    }


@app.get("/api/orders")
async def api_orders(
    limit: int = Query(20, ge=1, le=500),
    session: AsyncSession = Depends(get_session),
):
    orders = await list_recent_orders(session, limit)
    return [
        {
            "orderId": order.order_ref,
            "email": order.email,
            "amount": str(order.amount),
            "items": order.items,
            "isEligible": order.is_eligible,
            "consumed": order.consumed,
            "createdAt": order.created_at,
        }
        for order in orders
    ]


@app.get("/api/stats")
async def api_stats(session: AsyncSession = Depends(get_session)):
    return await get_play_stats(session)


@app.get("/api/sales-stats")
async def api_sales_stats(session: AsyncSession = Depends(get_session)):
    stats = await get_sales_stats(session)
    stats["totalRevenue"] = str(stats["totalRevenue"])
    for row in stats["eligibilityBreakdown"]:
        row["totalAmount"] = str(row["totalAmount"])
    return stats
