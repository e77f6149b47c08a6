# backend/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from dotenv import load_dotenv

from config import settings
from database import init_db
from services.errors import CartError, InvalidQuantity, StoreUnavailable

load_dotenv()

from routes.cart import router as cart_router

logger = logging.getLogger(__name__)

# Initialization
init_db()

app = FastAPI(title="Cart Service API", version="1.0.0")

# CORS Configuration
origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
if settings.FRONTEND_URL and settings.FRONTEND_URL not in origins:
    origins.append(settings.FRONTEND_URL)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    # The storefront reads the anonymous cart id from responses
    expose_headers=[settings.SESSION_HEADER],
)


@app.exception_handler(CartError)
async def cart_error_handler(request: Request, exc: CartError):
    logger.warning("Cart request %s %s failed: %s %s", request.method, request.url.path, exc.code, exc.context)
    headers = {}
    if isinstance(exc, StoreUnavailable):
        headers["Retry-After"] = str(exc.retry_after)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code, **exc.context},
        headers=headers,
    )


# Quantity errors belong to the cart taxonomy, everything else keeps the default 422
@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    for error in exc.errors():
        loc = error.get("loc") or ()
        if loc and loc[-1] == "quantity":
            return await cart_error_handler(request, InvalidQuantity(error.get("input")))
    return await request_validation_exception_handler(request, exc)


# Router registration
app.include_router(cart_router)

@app.get("/")
def read_root():
    return {"message": "Cart Service API is running"}
