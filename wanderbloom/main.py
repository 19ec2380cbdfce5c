# -*- coding: utf-8 -*-
import logging

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .agents import router as assistant_router
from .config import API_PREFIX, cors_origins
from .feedback import router as feedback_router
from .geocode import router as geocode_router
from .plans import router as plans_router
from .recommendations import router as recommendations_router
from .seasonal_events import router as seasonal_events_router
from .travel_time import router as travel_time_router
from .weather import router as weather_router

load_dotenv()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title="WanderBloom API", version="0.1.0")

app.include_router(recommendations_router)
app.include_router(weather_router)
app.include_router(geocode_router)
app.include_router(seasonal_events_router)
app.include_router(travel_time_router)
app.include_router(plans_router)
app.include_router(feedback_router)
app.include_router(assistant_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get(f"{API_PREFIX}/health")
def healthcheck() -> dict[str, str]:
    return {"status": "ok"}
