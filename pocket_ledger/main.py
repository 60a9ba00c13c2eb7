from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from pocket_ledger.db.core import Base, engine, StorageError, UnauthenticatedError
from pocket_ledger.logging_config import setup_logging, get_logger
from pocket_ledger.routers.users import router as users_router
from pocket_ledger.routers.accounts import router as accounts_router
from pocket_ledger.routers.transactions import router as transactions_router
from pocket_ledger.routers.budgets import router as budgets_router
from pocket_ledger.routers.reports import router as reports_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    setup_logging()
    # Local SQLite convenience; managed databases are migrated with alembic
    Base.metadata.create_all(bind=engine)
    logger.info("Pocket Ledger API started")
    yield


app = FastAPI(title="Pocket Ledger API", lifespan=lifespan)

app.include_router(users_router)
app.include_router(accounts_router)
app.include_router(transactions_router)
app.include_router(budgets_router)
app.include_router(reports_router)


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Storage is temporarily unavailable"},
    )


@app.exception_handler(UnauthenticatedError)
async def unauthenticated_error_handler(request: Request, exc: UnauthenticatedError):
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"detail": str(exc)},
        headers={"WWW-Authenticate": "Bearer"},
    )


@app.get("/")
def read_root():
    return "Server is running."
