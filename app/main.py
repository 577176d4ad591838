import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app import settings
from app.db import engine, Base

from app.models.product import Product
from app.models.cart_item import CartItem
from app.models.order import Order
from app.models.order_item import OrderItem
from app.models.loyalty_account import LoyaltyAccount
from app.models.loyalty_account_closure import LoyaltyAccountClosure
from app.models.sale import Sale
from app.models.financial_transaction import FinancialTransaction
from app.models.product_inventory import ProductInventory

from app.routes.products import router as products_router
from app.routes.cart import router as cart_router
from app.routes.checkout import router as checkout_router
from app.routes.orders import router as orders_router
from app.routes.loyalty import router as loyalty_router
from app.routes.sales import router as sales_router
from app.routes.finance import router as finance_router
from app.routes.inventory import router as inventory_router
from app.routes.reports import router as reports_router
from app.services.loyalty_errors import LoyaltyError

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Storefront & Loyalty")

# ─── CORS ─────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LoyaltyError)
async def handle_loyalty_error(request: Request, exc: LoyaltyError):
    if exc.status_code >= 500:
        logger.error("loyalty request failed", extra={"path": request.url.path, "error_code": exc.error_code})
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "errorCode": exc.error_code},
    )


@app.on_event("startup")
def startup():
    Base.metadata.create_all(bind=engine)


app.include_router(products_router)
app.include_router(cart_router)
app.include_router(checkout_router)
app.include_router(orders_router)
app.include_router(loyalty_router)
app.include_router(sales_router)
app.include_router(finance_router)
app.include_router(inventory_router)
app.include_router(reports_router)


@app.get("/")
def read_root():
    return {"message": "Storefront API is running"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=8001)
