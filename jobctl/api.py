"""
HTTP adapter over JobService.

POST /create-job  -> 201 with the new job
POST /status-job  -> 200 with the job for {"job_id": ...}

Errors are mapped by kind only: unknown id is 404, store failures are 500,
an unreadable body is 400.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .errors import JobNotFound, StoreReadError, StoreWriteError
from .service import JobService

logger = logging.getLogger(__name__)


class StatusJobRequest(BaseModel):
    job_id: str


def get_service(request: Request) -> JobService:
    return request.app.state.service


def create_app(service: JobService) -> FastAPI:
    """Build the app; the service's executor runs for the app's lifespan."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting job executor")
        service.start()
        yield
        logger.info("Stopping job executor")
        service.stop()

    app = FastAPI(title="jobctl", version="0.1.0", lifespan=lifespan)
    app.state.service = service

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"detail": "Invalid request body"})

    # sync handlers run in the threadpool; a full queue blocks only that worker
    @app.post("/create-job", status_code=201)
    def create_job(svc: JobService = Depends(get_service)):
        try:
            job = svc.create_job()
        except StoreWriteError:
            logger.exception("Failed to create job")
            raise HTTPException(status_code=500, detail="Failed to create job")
        return job.to_dict()

    @app.post("/status-job")
    def status_job(req: StatusJobRequest, svc: JobService = Depends(get_service)):
        try:
            job = svc.status_job(req.job_id)
        except JobNotFound as e:
            raise HTTPException(status_code=404, detail=str(e))
        except StoreReadError:
            logger.exception("Failed to read job %s", req.job_id)
            raise HTTPException(status_code=500, detail="Failed to read job")
        return job.to_dict()

    return app
