"""
User Service

People of a company. email and employee_id are unique per company.
Users that still hold assets, seats or accessories cannot be deleted;
the RESTRICT foreign keys turn that into a Conflict.
"""
from app.core.exceptions import NotFound
from app.models.reference import Department, Location
from app.models.role import Role
from app.models.user import User
from app.schemas.user import UserCreate, UserRead, UserUpdate
from app.services.crud import EntityService
from app.services.fields import field, reference


class UserService(EntityService):
    model = User
    entity = "USER"
    label = "User"
    plural = "users"
    import_key = "users"

    create_schema = UserCreate
    update_schema = UserUpdate
    read_schema = UserRead

    unique_fields = ("email", "employee_id")
    references = {
        "role_id": Role,
        "department_id": Department,
        "location_id": Location,
    }
    search_fields = ("first_name", "last_name", "email", "employee_id")
    order_fields = ("first_name", "last_name", "email", "employee_id", "status", "created_at", "updated_at")
    default_order = "last_name"
    import_fields = (
        field("first_name", "First Name", True),
        field("last_name", "Last Name", True),
        field("email", "Email", True),
        field("employee_id", "Employee ID", True),
        field("title", "Title"),
        field("phone", "Phone"),
        field("status", "Status"),
        reference("role", "Role", Role, auto_create=False),
        reference("department", "Department", Department),
        reference("location", "Location", Location),
    )

    # Asset lists show the assignee's name
    invalidates = ("assets",)

    def describe(self, user: User) -> str:
        return user.email

    def current(self):
        """The caller's own user row, matched on the identity-provider subject."""
        user = self._query().filter(User.oauth_id == self.context.user_id).first()
        if user is None:
            raise NotFound("User", self.context.user_id)
        return self.to_read(user)
