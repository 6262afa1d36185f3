"""
Entity CRUD Service

Generic tenant-scoped CRUD shared by every entity. Subclasses declare
the model, schemas, unique columns, foreign keys and import columns;
this class does the rest:

- every query is filtered on the caller's company_id
- uniqueness is checked per company before writing (the database
  constraints back it up for races)
- foreign keys in a payload must point at rows of the same company
- every mutation writes one audit entry after commit and invalidates
  the list cache of the entity (and of entities that display its names)

Methods raise AppError subclasses; routes wrap them with run_action.
"""
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple
import re

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.api.deps import RequestContext
from app.core.exceptions import NotFound, ValidationError
from app.models.user import User, UserStatus
from app.schemas.common import ListFilter
from app.services.audit import AuditService
from app.services.cache import EntityCache, get_cache
from app.services.fields import ImportField
from app.utils.logging import get_logger, log_security_event

logger = get_logger(__name__)


def to_snake(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def reference_label(column: str) -> str:
    """category_id -> Category, status_label_id -> Status Label."""
    return column[:-3].replace("_", " ").title()


class EntityService:
    model = None
    entity = "RECORD"  # audit prefix, e.g. ASSET -> ASSET_CREATED
    label = "Record"
    plural = "records"  # URL segment and cache namespace
    import_key = "records"  # key of the row array in JSON imports

    create_schema = None
    update_schema = None
    read_schema = None

    unique_fields: Tuple[str, ...] = ("name",)
    references: Dict[str, type] = {}
    search_fields: Tuple[str, ...] = ("name",)
    order_fields: Tuple[str, ...] = ("name", "created_at", "updated_at")
    default_order = "name"
    import_fields: Tuple[ImportField, ...] = ()

    # Other list caches that show this entity's names
    invalidates: Tuple[str, ...] = ()

    def __init__(
        self,
        db: Session,
        context: RequestContext,
        cache: Optional[EntityCache] = None,
        audit: Optional[AuditService] = None
    ):
        self.db = db
        self.context = context
        self.cache = cache if cache is not None else get_cache()
        self.audit = audit if audit is not None else AuditService(db, context)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _query(self):
        return self.db.query(self.model).filter(self.model.company_id == self.context.company_id)

    def _get_or_404(self, record_id: str):
        obj = self._query().filter(self.model.id == record_id).first()
        if obj is None:
            raise NotFound(self.label, record_id)
        return obj

    def to_read(self, obj):
        return self.read_schema.model_validate(obj)

    def _order_column(self, order_by: str):
        name = to_snake(order_by)
        if name not in self.order_fields:
            raise ValidationError(
                f"Cannot order {self.plural} by '{order_by}'. "
                f"Allowed: {', '.join(self.order_fields)}"
            )
        return getattr(self.model, name)

    def get_all(self, filters: Optional[ListFilter] = None) -> List[Any]:
        """All rows of the caller's company, optionally searched and sorted."""
        filters = filters or ListFilter()
        params = filters.model_dump()
        company_id = self.context.company_id

        cached = self.cache.get_list(self.plural, company_id, params)
        if cached is not None:
            return [self.read_schema.model_validate(row) for row in cached]

        query = self._query()
        if filters.search:
            pattern = f"%{filters.search}%"
            query = query.filter(or_(*[
                getattr(self.model, column).ilike(pattern) for column in self.search_fields
            ]))

        column = self._order_column(filters.order_by or self.default_order)
        query = query.order_by(column.desc() if filters.order == "desc" else column.asc())

        rows = [self.to_read(obj) for obj in query.all()]
        self.cache.set_list(self.plural, company_id, params, [row.model_dump(mode="json") for row in rows])
        return rows

    def find_by_id(self, record_id: str) -> Optional[Any]:
        """The record, or None when the id is unknown in the caller's company."""
        obj = self._query().filter(self.model.id == record_id).first()
        return self.to_read(obj) if obj is not None else None

    def get(self, record_id: str):
        return self.to_read(self._get_or_404(record_id))

    def all_records(self) -> List[Any]:
        """ORM rows of the caller's company, oldest first. Used by the CSV export."""
        return self._query().order_by(self.model.created_at.asc()).all()

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def check_references(self, values: Dict[str, Any]) -> None:
        """Every foreign key in values must name a row of the caller's company."""
        company_id = self.context.company_id
        for column, ref_model in self.references.items():
            ref_id = values.get(column)
            if not ref_id:
                continue
            owned = self.db.query(ref_model.id).filter(
                ref_model.id == ref_id,
                ref_model.company_id == company_id
            ).first()
            if owned:
                continue
            if self.db.query(ref_model.id).filter(ref_model.id == ref_id).first():
                log_security_event(
                    "cross_tenant_lookup",
                    {"company_id": company_id, "entity": ref_model.__tablename__, "entity_id": ref_id},
                    logger
                )
            raise ValidationError(f"{reference_label(column)} not found: {ref_id}")

    def check_unique(self, values: Dict[str, Any], exclude_id: Optional[str] = None) -> None:
        for column in self.unique_fields:
            value = values.get(column)
            if value is None:
                continue
            query = self._query().filter(getattr(self.model, column) == value)
            if exclude_id:
                query = query.filter(self.model.id != exclude_id)
            if query.first() is not None:
                raise ValidationError(
                    f"{self.label} with {column.replace('_', ' ')} '{value}' already exists"
                )

    def existing_values(self, column: str, values: Iterable[Any]) -> Set[Any]:
        """Which of values are already taken in the caller's company."""
        values = list({value for value in values if value is not None})
        if not values:
            return set()
        attr = getattr(self.model, column)
        return {row[0] for row in self._query().with_entities(attr).filter(attr.in_(values)).all()}

    def require_user(self, user_id: str) -> User:
        """An active user of the caller's company, for checkouts."""
        user = self.db.query(User).filter(
            User.id == user_id,
            User.company_id == self.context.company_id
        ).first()
        if user is None:
            raise ValidationError(f"User not found: {user_id}")
        if user.status != UserStatus.ACTIVE:
            raise ValidationError(f"User {user.name} is inactive")
        return user

    def validate_update(self, obj, changes: Dict[str, Any]) -> None:
        """Entity rules that depend on the stored row. Overridden per entity."""

    def before_remove(self, obj) -> None:
        """Guard against deleting a row that is still in use. Overridden per entity."""

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def build(self, values: Dict[str, Any]):
        return self.model(company_id=self.context.company_id, **values)

    def describe(self, obj) -> str:
        return getattr(obj, "name", None) or obj.id

    def after_change(self, action: str, entity_id: str, details: Optional[str] = None) -> None:
        self.cache.invalidate((self.plural,) + self.invalidates, self.context.company_id)
        self.audit.log(f"{self.entity}_{action}", self.entity, entity_id, details)

    def insert(self, payload) -> Any:
        values = payload.model_dump()
        self.check_references(values)
        self.check_unique(values)

        obj = self.build(values)
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        result = self.to_read(obj)

        logger.info(
            f"{self.label} created: {obj.id}",
            extra={"company_id": self.context.company_id, "entity": self.entity, "entity_id": obj.id}
        )
        self.after_change("CREATED", obj.id, f"Created {self.label.lower()} {self.describe(obj)}")
        return result

    def update(self, record_id: str, payload) -> Any:
        obj = self._get_or_404(record_id)
        changes = payload.model_dump(exclude_unset=True)

        required = {name for name, info in self.create_schema.model_fields.items() if info.is_required()}
        for column, value in changes.items():
            if value is None and column in required:
                raise ValidationError(f"{column.replace('_', ' ').capitalize()} cannot be empty")

        self.check_references(changes)
        self.check_unique(changes, exclude_id=obj.id)
        self.validate_update(obj, changes)

        for column, value in changes.items():
            setattr(obj, column, value)
        self.db.commit()
        self.db.refresh(obj)
        result = self.to_read(obj)

        logger.info(
            f"{self.label} updated: {obj.id}",
            extra={"company_id": self.context.company_id, "entity": self.entity, "entity_id": obj.id}
        )
        fields = ", ".join(sorted(changes)) or "none"
        self.after_change("UPDATED", obj.id, f"Updated fields: {fields}")
        return result

    def remove(self, record_id: str) -> Any:
        """Hard delete. Rows still referenced elsewhere raise Conflict."""
        obj = self._get_or_404(record_id)
        self.before_remove(obj)
        result = self.to_read(obj)
        description = self.describe(obj)

        self.db.delete(obj)
        self.db.commit()

        logger.info(
            f"{self.label} deleted: {record_id}",
            extra={"company_id": self.context.company_id, "entity": self.entity, "entity_id": record_id}
        )
        self.after_change("DELETED", record_id, f"Deleted {self.label.lower()} {description}")
        return result
