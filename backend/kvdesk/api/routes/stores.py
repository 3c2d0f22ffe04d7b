"""Store Routes: list the configured namespace bindings."""

from fastapi import Depends

from kvdesk.api.route_table import RouteConfig
from kvdesk.config import Settings, get_settings
from kvdesk.core.route_guards import store_list_guard
from kvdesk.schemas.kv import StoreOption, success


async def list_stores(settings: Settings = Depends(get_settings)):
    """Bindings usable as the 'kv' header, as select options."""
    return success([
        StoreOption(label=name, value=name) for name in settings.store_names()
    ])


ROUTES = [
    RouteConfig(
        "/api/getKvList", list_stores, methods=("GET",),
        guard=store_list_guard("GET"), name="list_stores", tags=["stores"],
    ),
]
