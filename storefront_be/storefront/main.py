import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from storefront.config import Settings, get_settings
from storefront.database import Database
from storefront.routers import auth, products, cart, orders, wishlist
from storefront.utils.responses import envelope

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")

logger = logging.getLogger(__name__)


def _validation_errors(exc: RequestValidationError) -> list:
    errors = []
    for err in exc.errors():
        # Drop the leading "body"/"query"/"path" segment from the location
        loc = [str(part) for part in err.get("loc", ())[1:]]
        errors.append({"field": ".".join(loc) or None, "message": err.get("msg")})
    return errors


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=envelope(str(exc.detail), success=False),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = _validation_errors(exc)
        first = errors[0] if errors else {}
        message = f"Invalid {first['field']}: {first['message']}" if first.get("field") else "Invalid request"
        return JSONResponse(status_code=400, content=envelope(message, success=False, errors=errors))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        body = envelope("Internal server error", success=False)
        if settings.expose_errors:
            body["error"] = str(exc)
        return JSONResponse(status_code=500, content=body)


def create_app(settings: Settings = None, database: Database = None) -> FastAPI:
    settings = settings or get_settings()
    database = database or Database(settings.DATABASE_URL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Ensure all DB tables exist
        database.create_all()
        yield
        database.dispose()

    app = FastAPI(title="Storefront API", docs_url="/api-docs", lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database

    # CORS configuration for frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app, settings)

    # Include routers
    app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
    app.include_router(products.router, prefix="/products", tags=["products"])
    app.include_router(cart.router, prefix="/cart", tags=["cart"])
    app.include_router(orders.router, prefix="/orders", tags=["orders"])
    app.include_router(wishlist.router, prefix="/wishlist", tags=["wishlist"])

    @app.get("/", tags=["general"])
    def read_root():
        return {"message": "Welcome to the Storefront API"}

    return app


app = create_app()


# --- Entry point for local runs ---
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("storefront.main:app", host="0.0.0.0", port=get_settings().PORT, reload=False)
