"""
Lookup Services

Reference entities that assets, accessories, licenses and users point
at. All are unique by (name, company_id) and share the generic CRUD;
they differ only in their columns and in which list caches show their
names.
"""
from app.models.reference import (
    AssetModel,
    Category,
    Department,
    Inventory,
    Location,
    Manufacturer,
    StatusLabel,
    Supplier,
)
from app.models.role import Role
from app.schemas import reference as schemas
from app.services.crud import EntityService
from app.services.fields import field, reference

NAME_ONLY = (field("name", "Name", True),)


class CategoryService(EntityService):
    model = Category
    entity = "CATEGORY"
    label = "Category"
    plural = "categories"
    import_key = "categories"
    create_schema = schemas.CategoryCreate
    update_schema = schemas.NamedUpdate
    read_schema = schemas.NamedRead
    import_fields = NAME_ONLY
    invalidates = ("assets", "accessories", "models")


class DepartmentService(EntityService):
    model = Department
    entity = "DEPARTMENT"
    label = "Department"
    plural = "departments"
    import_key = "departments"
    create_schema = schemas.DepartmentCreate
    update_schema = schemas.NamedUpdate
    read_schema = schemas.NamedRead
    import_fields = NAME_ONLY


class InventoryService(EntityService):
    model = Inventory
    entity = "INVENTORY"
    label = "Inventory"
    plural = "inventories"
    import_key = "inventories"
    create_schema = schemas.InventoryCreate
    update_schema = schemas.NamedUpdate
    read_schema = schemas.NamedRead
    import_fields = NAME_ONLY


class LocationService(EntityService):
    model = Location
    entity = "LOCATION"
    label = "Location"
    plural = "locations"
    import_key = "locations"
    create_schema = schemas.LocationCreate
    update_schema = schemas.LocationUpdate
    read_schema = schemas.LocationRead
    search_fields = ("name", "city", "country")
    import_fields = (
        field("name", "Name", True),
        field("address_line1", "Address Line 1", False, "Address"),
        field("address_line2", "Address Line 2"),
        field("city", "City"),
        field("state", "State"),
        field("zip", "Zip", False, "Postal Code"),
        field("country", "Country"),
    )


class ManufacturerService(EntityService):
    model = Manufacturer
    entity = "MANUFACTURER"
    label = "Manufacturer"
    plural = "manufacturers"
    import_key = "manufacturers"
    create_schema = schemas.ManufacturerCreate
    update_schema = schemas.ManufacturerUpdate
    read_schema = schemas.ManufacturerRead
    import_fields = (
        field("name", "Name", True),
        field("url", "URL"),
        field("support_url", "Support URL"),
        field("support_phone", "Support Phone"),
        field("support_email", "Support Email"),
    )
    invalidates = ("models",)


class ModelService(EntityService):
    model = AssetModel
    entity = "MODEL"
    label = "Model"
    plural = "models"
    import_key = "models"
    create_schema = schemas.ModelCreate
    update_schema = schemas.ModelUpdate
    read_schema = schemas.ModelRead
    references = {
        "manufacturer_id": Manufacturer,
        "category_id": Category,
    }
    search_fields = ("name", "model_no")
    import_fields = (
        field("name", "Name", True, "Model Name"),
        field("model_no", "Model No", False, "Model Number"),
        reference("manufacturer", "Manufacturer", Manufacturer),
        reference("category", "Category", Category),
        field("end_of_life", "End of Life"),
        field("notes", "Notes"),
    )
    invalidates = ("assets", "accessories")


class SupplierService(EntityService):
    model = Supplier
    entity = "SUPPLIER"
    label = "Supplier"
    plural = "suppliers"
    import_key = "suppliers"
    create_schema = schemas.SupplierCreate
    update_schema = schemas.SupplierUpdate
    read_schema = schemas.SupplierRead
    search_fields = ("name", "contact_name", "email")
    import_fields = (
        field("name", "Name", True, "Supplier Name"),
        field("contact_name", "Contact Name"),
        field("email", "Email"),
        field("phone", "Phone"),
        field("url", "URL"),
        field("address_line1", "Address Line 1", False, "Address"),
        field("address_line2", "Address Line 2"),
        field("city", "City"),
        field("state", "State"),
        field("zip", "Zip", False, "Postal Code"),
        field("country", "Country"),
        field("active", "Active"),
        field("notes", "Notes"),
    )


class StatusLabelService(EntityService):
    model = StatusLabel
    entity = "STATUS_LABEL"
    label = "Status label"
    plural = "status-labels"
    import_key = "statusLabels"
    create_schema = schemas.StatusLabelCreate
    update_schema = schemas.StatusLabelUpdate
    read_schema = schemas.StatusLabelRead
    import_fields = (
        field("name", "Name", True),
        field("description", "Description"),
        field("color_code", "Color Code", False, "Color"),
        field("is_archived", "Archived"),
        field("allow_loan", "Allow Loan"),
    )
    invalidates = ("assets", "maintenance")


class RoleService(EntityService):
    model = Role
    entity = "ROLE"
    label = "Role"
    plural = "roles"
    import_key = "roles"
    create_schema = schemas.RoleCreate
    update_schema = schemas.RoleUpdate
    read_schema = schemas.RoleRead
    import_fields = (
        field("name", "Name", True),
        field("description", "Description"),
        field("is_admin", "Admin", False, "Is Admin"),
    )
    invalidates = ("users",)
