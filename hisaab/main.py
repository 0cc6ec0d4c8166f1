import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from hisaab.core.config import Settings, get_settings
from hisaab.core.errors import LedgerError
from hisaab.core.log_config import configure_logging
from hisaab.db.session import build_engine, build_sessionmaker
from hisaab.api.v1.routes.system import router as system_router
from hisaab.api.v1.routes.user import router as user_router
from hisaab.api.v1.routes.group import router as group_router
from hisaab.api.v1.routes.expense import router as expense_router

logger = logging.getLogger(__name__)

async def ledger_error_handler(request: Request, exc: LedgerError):
    logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=400, content=exc.to_dict())

def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)

    engine = build_engine(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("%s starting (%s)", settings.APP_NAME, settings.ENVIRONMENT)
        yield
        await engine.dispose()

    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = engine
    app.state.sessionmaker = build_sessionmaker(engine)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.CLIENT_URL, "http://localhost:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(LedgerError, ledger_error_handler)

    @app.get("/")
    async def root():
        return {"message": f"{settings.APP_NAME} backend is live"}

    app.include_router(system_router, prefix="/api/v1/system")
    app.include_router(user_router, prefix="/api/v1/users")
    app.include_router(group_router, prefix="/api/v1/groups")
    app.include_router(expense_router, prefix="/api/v1/expense")

    return app
