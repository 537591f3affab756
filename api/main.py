"""
PostureSense Server - Main FastAPI Application

Local control API for the camera capture and pose estimation pipeline.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import LOG_FORMAT, LOG_LEVEL, SERVER_CONFIG
from .constants import APIPrefix
from .routes import (
    health,
    camera,
    model,
    tracking,
    stream,
)
from .controller_manager import (
    get_capture_controller,
    get_pose_engine,
    shutdown,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager - startup and shutdown"""
    # Startup
    logger.info("PostureSense Server starting...")
    get_capture_controller()
    logger.info("Capture controller initialized (camera closed until requested)")

    yield

    # Shutdown
    logger.info("PostureSense Server shutting down...")
    shutdown()


# Create FastAPI application
app = FastAPI(
    title="PostureSense Server",
    description="""
    ## 🧍 Local Pose Tracking

    Captures camera frames, runs an ONNX pose model and streams 33-point body
    landmarks to local clients. Everything stays on this machine.

    ### Lifecycle
    - ✅ `/api/v1/camera/init` - Open the camera
    - ✅ `/api/v1/model/load` - Load the pose model
    - ✅ `/api/v1/tracking/start` / `stop` - Control the sampling loop
    - 🛑 `/api/v1/camera/kill` - Kill switch: stop and release the camera

    ### Streaming
    - `/api/v1/ws/pose` - WebSocket with `pose_update` and `tracking_debug` events

    ### Quick Start
    ```bash
    curl -X POST http://localhost:8000/api/v1/model/load
    curl -X POST http://localhost:8000/api/v1/tracking/start
    # ... connect a WebSocket client to ws://localhost:8000/api/v1/ws/pose
    curl -X POST http://localhost:8000/api/v1/camera/kill
    ```
    """,
    version="1.0.0",
    lifespan=lifespan,
    openapi_tags=[
        {
            "name": "health",
            "description": "Health check and server status"
        },
        {
            "name": "camera",
            "description": "Camera acquisition and the kill switch"
        },
        {
            "name": "model",
            "description": "Pose model loading and introspection"
        },
        {
            "name": "tracking",
            "description": "Sampling loop control and status"
        },
        {
            "name": "stream",
            "description": "Live pose updates over WebSocket"
        },
    ],
)

# Add CORS middleware - allow all origins for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, prefix=APIPrefix.V1.value, tags=["health"])
app.include_router(camera.router, prefix=APIPrefix.V1.value, tags=["camera"])
app.include_router(model.router, prefix=APIPrefix.V1.value, tags=["model"])
app.include_router(tracking.router, prefix=APIPrefix.V1.value, tags=["tracking"])
app.include_router(stream.router, prefix=APIPrefix.V1.value, tags=["stream"])


@app.get("/")
async def root():
    """
    Root endpoint - Server info and getting started guide
    """
    controller = get_capture_controller()

    return {
        "name": "PostureSense Server",
        "version": "1.0.0",
        "status": "running",
        "description": "Local camera pose tracking with a kill switch",
        "model_loaded": get_pose_engine().is_model_loaded(),
        "state": controller.state.value,
        "getting_started": {
            "step_1": {
                "action": "Load the pose model",
                "endpoint": "POST /api/v1/model/load",
                "example": {"model_path": "resources/pose_model.onnx"},
            },
            "step_2": {
                "action": "Start tracking",
                "endpoint": "POST /api/v1/tracking/start",
                "description": "Opens the camera if needed"
            },
            "step_3": {
                "action": "Receive poses",
                "endpoint": "WS /api/v1/ws/pose",
            },
        },
        "endpoints": {
            "health": "/api/v1/health",
            "camera_init": "/api/v1/camera/init",
            "camera_kill": "/api/v1/camera/kill",
            "model_load": "/api/v1/model/load",
            "model_info": "/api/v1/model/info",
            "tracking_start": "/api/v1/tracking/start",
            "tracking_stop": "/api/v1/tracking/stop",
            "tracking_status": "/api/v1/tracking/status",
            "pose_stream": "/api/v1/ws/pose",
        }
    }


if __name__ == "__main__":
    import uvicorn

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
        format=LOG_FORMAT
    )

    # Run server
    uvicorn.run(
        app,
        host=SERVER_CONFIG.host,
        port=SERVER_CONFIG.port,
        log_level="info"
    )
