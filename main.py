import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from deps.pipeline import close_clients
from routers.admin import router as admin_router
from routers.aptitude import router as aptitude_router

# Routers
from routers.challenges import router as challenges_router
from routers.coding import router as coding_router
from routers.health import router as health_router
from routers.progress import router as progress_router

logger = logging.getLogger("placement-grading")
logging.basicConfig(level=logging.INFO)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await close_clients()


app = FastAPI(title="Placement Prep – Coding Grading API", lifespan=lifespan)

# Allow calls from the Vite dev server and the hosted front end
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:8080",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*", "x-api-key", "x-admin-token"],
)


@app.get("/")
def health_root():
    return {"ok": True}


app.include_router(challenges_router)  # /challenges
app.include_router(coding_router)  # /run-code, /grade, /evaluate-code
app.include_router(aptitude_router)  # /aptitude-test
app.include_router(progress_router)  # /progress/...
app.include_router(admin_router)  # /admin/...
app.include_router(health_router)  # /health/...
