from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from routesim.api.dependencies import shutdown_simulator
from routesim.api.routes_route import router as route_router
from routesim.api.run import router as run_router
from routesim.core.config import CORS_ORIGINS, DEFAULT_SPEED_MPS, HERE_API_KEY, LOG_LEVEL
from routesim.core.logger import get_logger, setup_logging

setup_logging(LOG_LEVEL)
logger = get_logger(__name__)

app = FastAPI(title="Route Simulator", version="1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(route_router)
app.include_router(run_router)


@app.get("/")
async def root():
    return {"message": "Route Simulator API running", "docs": "/docs"}


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


@app.on_event("startup")
async def startup():
    logger.info("============================================")
    logger.info("Route Simulator API starting")
    logger.info("HERE key: %s", "YES" if HERE_API_KEY else "NO")
    logger.info("Default speed: %.1f m/s", DEFAULT_SPEED_MPS)
    logger.info("============================================")


@app.on_event("shutdown")
async def shutdown():
    await shutdown_simulator()
