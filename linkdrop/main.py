import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from linkdrop.config import settings
from linkdrop.files.file_id import ID_LENGTH
from linkdrop.files.limits import UploadLimitMiddleware
from linkdrop.files.storage import Storage

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).parent
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))


@asynccontextmanager
async def lifespan(app: FastAPI):
    storage = Storage(settings.upload_dir, max_id_length=settings.max_id_length)
    # EnvironmentFailure propagates here so the server never starts serving
    storage.ensure_dir()
    app.state.storage = storage
    logger.info(f"linkdrop started, storing uploads in {storage.upload_dir.resolve()}")
    yield


app = FastAPI(title="linkdrop", version="0.1.0", lifespan=lifespan)
app.add_middleware(UploadLimitMiddleware)


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/", response_class=HTMLResponse)
async def index(request: Request):
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "base_url": str(request.base_url).rstrip("/"),
            "upload_limit_mb": settings.upload_limit_mb,
            "id_length": ID_LENGTH,
        },
    )


# Registered last: "/{file_id}" would otherwise shadow the routes above
from linkdrop.files.router import router as files_router  # noqa: E402

app.include_router(files_router)
