from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from omnicrm import __version__
from omnicrm.common.logger import setup_logger
from omnicrm.core.config import get_settings
from omnicrm.api.routers import auth, contacts, companies, segments, deals, pipelines, users, roles, health, lookups

settings = get_settings()

setup_logger(settings)

app = FastAPI(
    title=settings.app_name,
    description="Multi-tenant CRM with role and per-user permission enforcement",
    version=__version__,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.debug else settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth.router, prefix="/api")
app.include_router(contacts.router, prefix="/api")
app.include_router(companies.router, prefix="/api")
app.include_router(segments.router, prefix="/api")
app.include_router(deals.router, prefix="/api")
app.include_router(pipelines.router, prefix="/api")
app.include_router(lookups.tags_router, prefix="/api")
app.include_router(lookups.statuses_router, prefix="/api")
app.include_router(lookups.lead_sources_router, prefix="/api")
app.include_router(users.router, prefix="/api")
app.include_router(roles.router, prefix="/api")
app.include_router(health.router)


@app.get("/")
async def root():
    return {
        "name": settings.app_name,
        "version": __version__,
        "docs": "/docs" if settings.debug else None,
    }
