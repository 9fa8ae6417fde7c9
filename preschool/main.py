from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from preschool.api.v1.admissions.router import router as admissions_router
from preschool.api.v1.announcements.router import router as announcements_router
from preschool.api.v1.auth.router import router as auth_router
from preschool.api.v1.dashboard.router import router as dashboard_router
from preschool.api.v1.events.router import router as events_router
from preschool.api.v1.files.router import router as files_router
from preschool.api.v1.payments.router import router as payments_router
from preschool.api.v1.profiles.router import router as profiles_router
from preschool.api.v1.queries.router import router as queries_router
from preschool.api.v1.students.router import router as students_router
from preschool.core.config import settings
from preschool.core.logging_config import configure_logging


def create_app() -> FastAPI:
    configure_logging(settings.log_level)

    app = FastAPI(title="Preschool Admin Backend")

    # CORS: allow the parent and staff frontends to call this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(auth_router)
    app.include_router(profiles_router)
    app.include_router(students_router)
    app.include_router(admissions_router)
    app.include_router(payments_router)
    app.include_router(events_router)
    app.include_router(announcements_router)
    app.include_router(queries_router)
    app.include_router(dashboard_router)
    app.include_router(files_router)

    return app


app = create_app()
