# ecofinds/main.py
import logging

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

load_dotenv()

from ecofinds.config import settings
from ecofinds.database import init_db

# Routers
from ecofinds.routes.auth import router as auth_router
from ecofinds.routes.users import router as users_router
from ecofinds.routes.products import router as products_router
from ecofinds.routes.cart import router as cart_router
from ecofinds.routes.orders import router as orders_router
from ecofinds.routes.upload import router as upload_router

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def _validation_errors(exc: RequestValidationError):
    errors = []
    for err in exc.errors():
        # loc looks like ("body", "price"); drop the location prefix
        loc = [str(part) for part in err.get("loc", ())[1:]]
        message = err.get("msg", "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.append({"field": ".".join(loc) or "body", "message": message})
    return errors


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = _validation_errors(exc)
    logger.info("Validation failed on %s %s: %s", request.method, request.url.path, errors)
    return JSONResponse(status_code=400, content={"detail": "Validation failed", "errors": errors})


def create_app() -> FastAPI:
    init_db()

    app = FastAPI(title="EcoFinds API", version="1.0.0")

    origins = ["http://localhost:5173", "http://127.0.0.1:5173"]
    if settings.FRONTEND_URL and settings.FRONTEND_URL not in origins:
        origins.append(settings.FRONTEND_URL)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(products_router)
    app.include_router(cart_router)
    app.include_router(orders_router)
    app.include_router(upload_router)

    @app.get("/")
    def read_root():
        return {"message": "EcoFinds API is running"}

    @app.get("/health")
    def health():
        return {"status": "OK"}

    return app


app = create_app()
