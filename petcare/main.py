import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from petcare.core import config
from petcare.database import Base, engine, ensure_appointment_schema
from petcare.models import appointment, pet, user  # noqa: F401
from petcare.routes import appointment_routes, veterinarian_routes
from petcare.services.status_scheduler import start_status_scheduler, stop_status_scheduler

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)

config.validate_runtime_config()

app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=['http://localhost:4200'],
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)


@app.on_event('startup')
def initialize_database() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        ensure_appointment_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and Postgres credentials.')


@app.on_event('startup')
def start_background_jobs() -> None:
    if config.STATUS_SCHEDULER_ENABLED:
        start_status_scheduler()


@app.on_event('shutdown')
def stop_background_jobs() -> None:
    stop_status_scheduler()


@app.get('/')
def root():
    return {'status': 'Pet Care Appointment API Running'}


app.include_router(appointment_routes.router, prefix='/appointments')
app.include_router(veterinarian_routes.router, prefix='/veterinarians')
