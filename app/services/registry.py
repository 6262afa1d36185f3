"""
Entity Registry

URL segment -> service class, and model -> service class for the
import pipeline's reference resolution.
"""
from typing import Dict, Type

from app.services.accessories import AccessoryService
from app.services.assets import AssetService
from app.services.crud import EntityService
from app.services.licenses import LicenseService
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
from app.services.maintenance import MaintenanceService
from app.services.users import UserService

SERVICES: Dict[str, Type[EntityService]] = {
    service.plural: service
    for service in (
        AssetService,
        AccessoryService,
        LicenseService,
        MaintenanceService,
        UserService,
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
}

SERVICES_BY_MODEL: Dict[type, Type[EntityService]] = {
    service.model: service for service in SERVICES.values()
}
