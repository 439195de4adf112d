from fastapi import APIRouter

from constants import STUN_SERVERS, TURN_URL, TURN_USERNAME, TURN_CREDENTIAL
from schemas.rooms import ClientConfigResponse, IceServer

config_router = APIRouter(tags=["config"])


def build_ice_servers():
    servers = [IceServer(urls=url) for url in STUN_SERVERS]
    if TURN_URL:
        servers.append(IceServer(urls=TURN_URL, username=TURN_USERNAME, credential=TURN_CREDENTIAL))
    return servers


@config_router.get("/config", response_model=ClientConfigResponse, response_model_exclude_none=True)
async def client_config():
    """ICE servers clients should hand to their peer connection."""
    return ClientConfigResponse(ice_servers=build_ice_servers())
