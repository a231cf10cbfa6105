from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from smartcare.api.routes.router import api_router
from smartcare.core.config import settings
from smartcare.core.errors import SmartCareError
from smartcare.core.firebase import init_firebase
from smartcare.core.logger import setup_logging

setup_logging()

app = FastAPI(title=f"{settings.APP_NAME} Backend")


@app.on_event("startup")
def startup():
    """Initialize Firebase Admin (reads credentials path from settings)."""
    init_firebase()


@app.exception_handler(SmartCareError)
async def smartcare_error_handler(request: Request, exc: SmartCareError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.get("/")
async def root():
    return {"message": f"{settings.APP_NAME} backend is running"}


@app.get("/health")
async def health_check():
    return {"status": "ok"}


app.include_router(api_router)
