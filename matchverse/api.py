from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .logging_config import setup_logging
from .services.exceptions import ServiceError
from .routes.matches import router as matches_router
from .routes.results import router as results_router
from .routes.ranking import router as ranking_router

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="MatchVerse matchmaking")


@app.exception_handler(RequestValidationError)
def validation_exception_handler(request, exc):
    return JSONResponse(status_code=400, content={"detail": exc.errors()})


@app.exception_handler(ServiceError)
def service_error_handler(request, exc: ServiceError):
    logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


app.include_router(matches_router)
app.include_router(results_router)
app.include_router(ranking_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
