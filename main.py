import os
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Depends
from fastapi.middleware.cors import CORSMiddleware
from pymongo.database import Database
from pymongo.errors import PyMongoError

import products
import users
from database import connect, ensure_indexes, get_db
from errors import register_error_handlers

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if app.state.db is None:
        app.state.db = connect()
        ensure_indexes(app.state.db)
    yield


def create_app(db: Optional[Database] = None) -> FastAPI:
    app = FastAPI(title="Jewelry Store API", lifespan=lifespan)
    app.state.db = db
    if db is not None:
        ensure_indexes(db)

    origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    app.include_router(users.router)
    app.include_router(products.router)

    @app.get("/")
    def read_root():
        return {"message": "Jewelry Store API ready"}

    @app.get("/api/health")
    def health(db: Database = Depends(get_db)):
        response = {
            "backend": "running",
            "database": "unavailable",
            "collections": [],
        }
        try:
            response["collections"] = sorted(db.list_collection_names())
            response["database"] = "connected"
        except PyMongoError as e:
            logger.error("Health check failed: %s", e)
        return response

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
