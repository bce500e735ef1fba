from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from vessel_digest.core.config import settings
from vessel_digest.routers import email_notifications, vessel_events

OPENAPI_TAGS = [
    {"name": "Vessel Events", "description": "Record notifiable vessel events."},
    {
        "name": "Email Notifications",
        "description": "Inspect grouped email notifications and operate on stuck digests.",
    },
]

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.version,
    description=(
        "Grouped email notifications for vessel activity. Events are recorded per "
        "recipient, aggregated after a debounce window and delivered as digests."
    ),
    openapi_tags=OPENAPI_TAGS,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(
    vessel_events.router,
    prefix="/v1/vessel_events",
    tags=["Vessel Events"],
)
app.include_router(
    email_notifications.router,
    prefix="/v1/email_notifications",
    tags=["Email Notifications"],
)


@app.get("/")
async def root() -> dict[str, str]:
    return {
        "app": settings.APP_NAME,
        "version": settings.version,
        "domain": settings.APP_DOMAIN,
        "status": "running",
    }
