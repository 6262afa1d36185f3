"""
Lookup Endpoints

Reference entities only need the standard routes, so their routers are
generated: /categories, /departments, /inventories, /locations,
/manufacturers, /models, /suppliers, /status-labels and /roles.
"""
from fastapi import APIRouter

from app.api.endpoints.crud import add_crud_routes
from app.services.lookups import (
    CategoryService,
    DepartmentService,
    InventoryService,
    LocationService,
    ManufacturerService,
    ModelService,
    RoleService,
    StatusLabelService,
    SupplierService,
)

LOOKUP_SERVICES = (
    CategoryService,
    DepartmentService,
    InventoryService,
    LocationService,
    ManufacturerService,
    ModelService,
    SupplierService,
    StatusLabelService,
    RoleService,
)

routers = [
    add_crud_routes(APIRouter(prefix=f"/{service.plural}", tags=[service.plural]), service)
    for service in LOOKUP_SERVICES
]
