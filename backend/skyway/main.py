# backend/skyway/main.py
import logging
from contextlib import asynccontextmanager
from typing import List

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from .composer import RouteComposer
from .config import DEFAULT_CONFIG, RoutingConfig, Settings
from .directions import MapboxDirectionsClient
from .errors import ExternalProviderUnavailable, InvalidInput, NoPathFound, TargetNotFound
from .graph_loader import load_graph
from .models import Coordinates
from .schemas import (
    BuildingOut,
    NodeOut,
    PopularOut,
    RouteRequest,
    RouteResponse,
    building_out,
    node_out,
    route_response,
)
from .visits import VisitCounter

logger = logging.getLogger(__name__)


def create_app(
    graph=None,
    directions=None,
    visits=None,
    settings: Settings = None,
    config: RoutingConfig = DEFAULT_CONFIG,
) -> FastAPI:
    """Build the API. Anything not passed in is created from settings at startup."""
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logging.basicConfig(
            level=settings.log_level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        owned_client = None
        app.state.graph = graph if graph is not None else load_graph(settings.graph_prefix)
        if directions is None:
            owned_client = MapboxDirectionsClient(
                settings.mapbox_api_key,
                base_url=settings.mapbox_base_url,
                timeout=settings.directions_timeout_s,
            )
        app.state.visits = visits if visits is not None else VisitCounter(settings.visit_throttle_s)
        app.state.composer = RouteComposer(
            app.state.graph, directions or owned_client, app.state.visits, config
        )
        logger.info("Skyway Navigator ready")
        try:
            yield
        finally:
            app.state.composer.close()
            if owned_client is not None:
                owned_client.close()

    app = FastAPI(title="Skyway Navigator API", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/healthz")
    def healthz():
        return {"status": "ok"}

    @app.post("/route", response_model=RouteResponse)
    def route(req: RouteRequest, request: Request):
        composer: RouteComposer = request.app.state.composer
        try:
            result = composer.route(
                req.target_building_name,
                Coordinates(req.user_latitude, req.user_longitude),
                req.preference,
            )
        except InvalidInput as e:
            raise HTTPException(status_code=400, detail=str(e))
        except (TargetNotFound, NoPathFound) as e:
            raise HTTPException(status_code=404, detail=str(e))
        except ExternalProviderUnavailable as e:
            logger.error("Routing to %s failed: %s", req.target_building_name, e)
            raise HTTPException(status_code=503, detail=str(e))
        return route_response(result)

    @app.get("/buildings", response_model=List[BuildingOut])
    def buildings(request: Request):
        return [building_out(b) for b in request.app.state.graph.buildings()]

    @app.get("/buildings/search", response_model=List[BuildingOut])
    def search(request: Request, q: str = Query(..., min_length=1), limit: int = Query(5, ge=1, le=50)):
        return [building_out(b) for b in request.app.state.graph.search(q, limit)]

    @app.get("/buildings/nearest", response_model=NodeOut)
    def nearest(
        request: Request,
        latitude: float = Query(..., ge=-90, le=90),
        longitude: float = Query(..., ge=-180, le=180),
    ):
        node = request.app.state.graph.nearest_building_node(latitude, longitude)
        if node is None:
            raise HTTPException(status_code=404, detail="No building nodes loaded")
        return node_out(node)

    @app.get("/popular", response_model=List[PopularOut])
    def popular(request: Request, limit: int = Query(5, ge=1, le=50)):
        return [PopularOut(building_name=name, visits=n) for name, n in request.app.state.visits.top(limit)]

    return app


app = create_app()


def serve():
    """Run the API with uvicorn, bound to HOST/PORT from the environment."""
    settings = Settings.from_env()
    uvicorn.run("backend.skyway.main:app", host=settings.host, port=settings.port,
                log_level=settings.log_level.lower())


if __name__ == "__main__":
    serve()
