"""
Database Models

All tenant-owned models carry company_id for isolation.
This is enforced at both application and database level.
"""
from app.models.company import Company
from app.models.role import Role
from app.models.reference import (
    Category,
    Department,
    Inventory,
    Location,
    Manufacturer,
    AssetModel,
    Supplier,
    StatusLabel,
)
from app.models.user import User, UserStatus
from app.models.asset import Asset, AssetHistory, AssetState
from app.models.accessory import Accessory, AccessoryAssignment
from app.models.license import License, LicenseAssignment
from app.models.audit_log import AuditLog, AuditLogImmutableError
from app.models.co2 import Co2eRecord
from app.models.maintenance import Maintenance

__all__ = [
    "Company", "Role", "Category", "Department", "Inventory", "Location",
    "Manufacturer", "AssetModel", "Supplier", "StatusLabel", "User", "UserStatus",
    "Asset", "AssetHistory", "AssetState", "Accessory", "AccessoryAssignment",
    "License", "LicenseAssignment", "Maintenance", "AuditLog", "AuditLogImmutableError", "Co2eRecord",
]
