import logging
from contextlib import asynccontextmanager
from typing import List, Optional

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware

from agents.advisor import RemoteAdvisor
from config import PlannerConfig, load_config
from engine.recommendation import Advisor, RecommendationUnavailable
from models.schemas import (
    BuildingTotals,
    CostCenter,
    Device,
    DeviceCreate,
    DeviceUpdate,
    Recommendation,
    Room,
    RoomCreate,
    SolarSettings,
    SolarSettingsUpdate,
    UsageShare,
)
from services.coordinator import PlannerCoordinator
from storage.client import DeviceNotFoundError, RoomNotFoundError, StorageClient

logger = logging.getLogger(__name__)


def configure_logging(config: PlannerConfig) -> None:
    logging.basicConfig(level=config.log_level)
    # basicConfig leaves an already configured root logger alone
    logging.getLogger().setLevel(config.log_level)


def build_advisor(config: PlannerConfig) -> Optional[Advisor]:
    if not config.advisory_enabled:
        logger.info("Remote advisory disabled; recommendations are rule-based")
        return None
    return RemoteAdvisor(model=config.advisory_model, app_name=config.app_name)


def create_app(
    config: Optional[PlannerConfig] = None,
    storage: Optional[StorageClient] = None,
    advisor: Optional[Advisor] = None,
) -> FastAPI:
    config = config or load_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client = storage or StorageClient()
        client.open()
        coordinator = PlannerCoordinator(client, advisor if advisor is not None else build_advisor(config))
        coordinator.start()
        app.state.storage = client
        app.state.coordinator = coordinator
        try:
            yield
        finally:
            coordinator.stop()
            client.close()

    app = FastAPI(title="Solar Energy Planner API", version="1.0.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def get_storage(request: Request) -> StorageClient:
        return request.app.state.storage

    def get_coordinator(request: Request) -> PlannerCoordinator:
        return request.app.state.coordinator

    @app.get("/health")
    async def health():
        """Health check endpoint"""
        return {"status": "healthy", "service": "solar-energy-planner"}

    # --- rooms ---

    @app.get("/users/{user_id}/rooms", response_model=List[Room])
    async def list_rooms(user_id: str, storage: StorageClient = Depends(get_storage)):
        return storage.list_rooms(user_id)

    @app.post("/users/{user_id}/rooms", response_model=Room, status_code=201)
    async def add_room(user_id: str, data: RoomCreate, storage: StorageClient = Depends(get_storage)):
        return storage.add_room(user_id, data)

    @app.delete("/users/{user_id}/rooms/{room_id}", status_code=204)
    async def delete_room(user_id: str, room_id: str, storage: StorageClient = Depends(get_storage)):
        try:
            storage.delete_room(user_id, room_id)
        except RoomNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))

    # --- devices ---

    @app.get("/users/{user_id}/devices", response_model=List[Device])
    async def list_devices(user_id: str, storage: StorageClient = Depends(get_storage)):
        return storage.list_devices(user_id)

    @app.post("/users/{user_id}/devices", response_model=Device, status_code=201)
    async def add_device(user_id: str, data: DeviceCreate, storage: StorageClient = Depends(get_storage)):
        try:
            return storage.add_device(user_id, data)
        except RoomNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))

    @app.patch("/users/{user_id}/devices/{device_id}", response_model=Device)
    async def update_device(
        user_id: str,
        device_id: str,
        data: DeviceUpdate,
        storage: StorageClient = Depends(get_storage),
    ):
        try:
            return storage.update_device(user_id, device_id, data)
        except DeviceNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))

    @app.delete("/users/{user_id}/devices/{device_id}", status_code=204)
    async def delete_device(user_id: str, device_id: str, storage: StorageClient = Depends(get_storage)):
        try:
            storage.delete_device(user_id, device_id)
        except DeviceNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))

    # --- settings ---

    @app.get("/users/{user_id}/settings", response_model=SolarSettings)
    async def get_settings(user_id: str, storage: StorageClient = Depends(get_storage)):
        return storage.get_settings(user_id)

    @app.put("/users/{user_id}/settings", response_model=SolarSettings)
    async def update_settings(
        user_id: str,
        data: SolarSettingsUpdate,
        storage: StorageClient = Depends(get_storage),
    ):
        return storage.update_settings(user_id, data)

    # --- derived ---

    @app.get("/users/{user_id}/metrics", response_model=BuildingTotals)
    async def metrics(user_id: str, coordinator: PlannerCoordinator = Depends(get_coordinator)):
        return coordinator.totals(user_id)

    @app.get("/users/{user_id}/breakdown", response_model=List[UsageShare])
    async def breakdown(user_id: str, coordinator: PlannerCoordinator = Depends(get_coordinator)):
        return coordinator.usage_breakdown(user_id)

    @app.get("/users/{user_id}/cost-centers", response_model=List[CostCenter])
    async def cost_centers(user_id: str, coordinator: PlannerCoordinator = Depends(get_coordinator)):
        return coordinator.top_cost_centers(user_id)

    @app.post("/users/{user_id}/recommendations", response_model=Recommendation)
    async def recommendations(user_id: str, coordinator: PlannerCoordinator = Depends(get_coordinator)):
        """Generate recommendations; degrades to rule-based output if the advisor fails."""
        try:
            return await coordinator.recommend(user_id)
        except RecommendationUnavailable as e:
            raise HTTPException(status_code=409, detail=str(e))

    return app


config = load_config()
configure_logging(config)
app = create_app(config)

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=config.port)
