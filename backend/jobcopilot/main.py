from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import models
from .config import get_settings
from .database import engine
from .logging_config import setup_logging
from .routes import agents, applications, cron, dashboard

settings = get_settings()
setup_logging(settings.log_level)

# Create database tables
models.Base.metadata.create_all(bind=engine)

app = FastAPI(title="Job Search Copilot", version="1.0.0")

app.include_router(applications.router, prefix="/api/v1")
app.include_router(dashboard.router, prefix="/api/v1")
app.include_router(agents.router, prefix="/api/v1")
app.include_router(cron.router, prefix="/api/v1")

# Allow frontend to connect
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    return {"message": "Job Search Copilot API"}


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
