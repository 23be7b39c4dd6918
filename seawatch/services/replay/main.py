import os
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST
from dotenv import load_dotenv

from seawatch.shared.clients.chain import Web3ChainClient
from seawatch.shared.core.config import Config
from seawatch.shared.core.models import CheckpointModel, EventRecordModel
from seawatch.shared.database.connection import DatabaseConnection
from seawatch.shared.database.repositories import CheckpointRepository, EventLogRepository
from seawatch.shared.utils.logger import LoggerSetup

from .service import ReplayService

load_dotenv()
api_config = Config.load_api_config()
logger = LoggerSetup.setup(__name__)

# Service instance
service: ReplayService | None = None
db: DatabaseConnection | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Service lifecycle manager"""
    global service, db

    chain_client: Web3ChainClient | None = None
    try:
        config = Config()
        LoggerSetup.configure(config.logging)

        # Initialize database connection
        db = DatabaseConnection(config.database)
        await db.initialize()
        if config.database.auto_create:
            await db.create_tables()

        # Connect to the node
        chain_client = Web3ChainClient(config.chain)
        await chain_client.connect()

        service = ReplayService(
            chain_client=chain_client,
            checkpoint_repository=CheckpointRepository(db),
            event_repository=EventLogRepository(db),
            contract_address=config.chain.contract_address,
            config=config.replay
        )

        await service.start()

        yield  # Service is running

    except Exception as e:
        logger.error(f"Service initialization failed: {e}")
        raise

    finally:
        # Cleanup
        if service:
            await service.stop()
        if chain_client:
            await chain_client.close()
        if db:
            await db.close()

# Initialize FastAPI app
app = FastAPI(
    title="Seawatch Replay Service",
    description="Seaport event replay and checkpointing service",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=api_config.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/health")
async def health_check():
    """Health check endpoint"""
    if not service or not db:
        raise HTTPException(status_code=503, detail="Service not initialized")

    database = await db.check_health()
    return {
        "status": "healthy" if database["connection_ok"] else "degraded",
        "service_status": service._status,
        "database": database
    }

@app.get("/status")
async def get_status():
    """Get detailed service status"""
    if not service:
        raise HTTPException(status_code=503, detail="Service not initialized")

    return {
        "status": service.get_service_status(),
        "metrics": service.get_metrics()
    }

@app.get("/metrics")
async def get_metrics():
    """Get Prometheus metrics"""
    if not service:
        raise HTTPException(status_code=503, detail="Service not initialized")

    try:
        return Response(
            content=service.get_prometheus_metrics(),
            media_type=CONTENT_TYPE_LATEST
        )
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to collect metrics: {str(e)}")

@app.get("/checkpoints", response_model=list[CheckpointModel])
async def get_checkpoints():
    """List stored synchronization checkpoints"""
    if not service:
        raise HTTPException(status_code=503, detail="Service not initialized")

    try:
        return await service.checkpoint_repository.get_all()
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to fetch checkpoints: {str(e)}")

@app.get("/events", response_model=list[EventRecordModel])
async def get_events(
    event: str | None = Query(None, description="Only return events with this name"),
    limit: int = Query(100, ge=1, le=1000, description="Maximum number of events")
):
    """Get the most recent events recorded for the tracked contract"""
    if not service:
        raise HTTPException(status_code=503, detail="Service not initialized")

    try:
        return await service.event_repository.get_recent(
            contract=service.contract_address,
            event_name=event,
            limit=limit
        )
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to fetch events: {str(e)}")

@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler"""
    return JSONResponse(
        status_code=500,
        content={"detail": f"Internal server error: {str(exc)}"}
    )

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "seawatch.services.replay.main:app",
        host="0.0.0.0",
        port=api_config.port,
        reload=bool(os.getenv("DEBUG", False))
    )
