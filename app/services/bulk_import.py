"""
Bulk Import Pipeline

Creates many records of one entity from CSV rows (or JSON objects with
the same keys) and reports per-row failures instead of aborting.

Steps:
1. Map header cells onto the entity's ImportFields (case-insensitive,
   by name, label or alias). Unknown columns are dropped; a required field
   without a column blocks the whole import.
2. Validate each row with the entity's create schema. Failing rows are
   reported with their 1-based index and skipped.
3. Resolve reference columns by name inside the caller's company.
   Suppliers and roles must exist; other lookups may be missing.
4. Reconcile unique columns against the database and within the batch,
   then insert the remaining rows with one flush, creating the missing
   lookups they name in the same savepoint. If that flush still
   hits a constraint (another writer got there first), retry row by row
   in savepoints so each failure becomes a row error.
5. Commit, write one <ENTITY>_CREATED audit entry per record and
   invalidate the affected list caches once.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple
import csv
import io

from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel
from sqlalchemy import func
from sqlalchemy.exc import DataError, IntegrityError

from app.config import get_settings
from app.core.exceptions import ValidationError
from app.schemas.imports import ImportReport, ImportRowError
from app.services.actions import integrity_error
from app.services.crud import EntityService
from app.services.fields import ImportField, normalize_header
from app.services.registry import SERVICES_BY_MODEL
from app.utils.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()


def parse_csv(text: str) -> List[Dict[str, str]]:
    """Rows of a CSV document keyed by its header cells."""
    reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
    try:
        if not reader.fieldnames:
            raise ValidationError("CSV has no header row")
        rows = []
        for row in reader:
            # cells beyond the header land under the None key
            row.pop(None, None)
            rows.append(row)
        return rows
    except csv.Error as e:
        raise ValidationError(f"Could not parse CSV (line {reader.line_num}): {e}")


def rows_from_payload(payload: Any, key: str) -> List[Any]:
    """The row array of a JSON import body: {"<key>": [...]}."""
    if not isinstance(payload, dict) or key not in payload:
        raise ValidationError(f"Expected a JSON object with a '{key}' array")
    rows = payload[key]
    if not isinstance(rows, list):
        raise ValidationError(f"'{key}' must be an array")
    return rows


@dataclass
class PendingRow:
    values: Dict[str, Any]
    missing: List[Tuple[ImportField, str]]  # auto-created references not in the database yet


class BulkImporter:

    def __init__(self, service: EntityService):
        self.service = service
        self.db = service.db
        self.context = service.context
        self.fields = service.import_fields
        self._resolved: Dict[Tuple[type, str], Optional[str]] = {}
        self._created_refs: List[Tuple[Tuple[type, str], Any]] = []

    # ------------------------------------------------------------------
    # Column mapping
    # ------------------------------------------------------------------

    def map_columns(self, headers: List[str]) -> Dict[str, ImportField]:
        """
        Header cell -> field. Raises ValidationError if a required field has no column.

        Several spellings of the same field may appear (JSON rows do not
        share one header line); each of them maps to that field.
        """
        mapping: Dict[str, ImportField] = {}
        for header in headers:
            key = normalize_header(header)
            for import_field in self.fields:
                if key in import_field.headers:
                    mapping[header] = import_field
                    break

        missing = [f.label for f in self.fields if f.required and f not in mapping.values()]
        if missing:
            raise ValidationError(f"Missing required columns: {', '.join(missing)}")

        dropped = [header for header in headers if header not in mapping]
        if dropped:
            logger.debug(f"Ignoring unmapped {self.service.plural} columns: {dropped}")
        return mapping

    # ------------------------------------------------------------------
    # Row validation
    # ------------------------------------------------------------------

    def _describe(self, exc: PydanticValidationError) -> str:
        labels = {f.name: f.label for f in self.fields}
        labels.update({to_camel(f.name): f.label for f in self.fields})
        for f in self.fields:
            if f.reference:
                labels[f.reference.column] = labels[to_camel(f.reference.column)] = f.label
        parts = []
        for error in exc.errors():
            loc = error.get("loc") or ("",)
            message = error.get("msg", "Invalid value")
            if message.startswith("Value error, "):
                message = message[len("Value error, "):]
            label = labels.get(loc[0], loc[0])
            parts.append(f"{label}: {message}" if label else message)
        return "; ".join(parts)

    def _lookup(self, import_field: ImportField, name: str) -> Optional[str]:
        """
        Id of the named reference in the caller's company.

        None means the row may create it later. Raises ValidationError for
        references that have to exist already.
        """
        reference = import_field.reference
        model = reference.model
        cache_key = (model, name.lower())
        if cache_key not in self._resolved:
            column = getattr(model, reference.lookup)
            obj = self.db.query(model).filter(
                model.company_id == self.context.company_id,
                func.lower(column) == name.lower()
            ).first()
            self._resolved[cache_key] = obj.id if obj else None

        ref_id = self._resolved[cache_key]
        if ref_id is None and not reference.auto_create:
            raise ValidationError(f"{import_field.label} '{name}' not found")
        return ref_id

    def validate_row(self, raw: Any, mapping: Dict[str, ImportField]) -> PendingRow:
        """Column values -> model values. Raises ValidationError with a row-level message."""
        if not isinstance(raw, dict):
            raise ValidationError("Row is not an object")

        # first non-empty cell wins when a field has several spellings
        cells: Dict[ImportField, Any] = {}
        for header, import_field in mapping.items():
            value = raw.get(header)
            if isinstance(value, str):
                value = value.strip()
            if value is None or value == "" or import_field in cells:
                continue
            cells[import_field] = value

        plain = {f.name: value for f, value in cells.items() if not f.reference}
        missing = []
        for import_field, value in cells.items():
            if not import_field.reference:
                continue
            name = str(value)
            ref_id = self._lookup(import_field, name)
            if ref_id is None:
                missing.append((import_field, name))
            else:
                plain[import_field.reference.column] = ref_id

        try:
            payload = self.service.create_schema.model_validate(plain)
        except PydanticValidationError as e:
            raise ValidationError(self._describe(e))
        return PendingRow(values=payload.model_dump(), missing=missing)

    # ------------------------------------------------------------------
    # Insertion
    # ------------------------------------------------------------------

    def _label_for(self, column: str) -> str:
        for import_field in self.fields:
            if import_field.name == column:
                return import_field.label
        return column.replace("_", " ")

    def reconcile_unique(
        self,
        pending: List[Tuple[int, PendingRow]],
        errors: List[ImportRowError]
    ) -> List[Tuple[int, PendingRow]]:
        """Drop rows whose unique values exist already or repeat an earlier row."""
        for column in self.service.unique_fields:
            label = self._label_for(column)
            taken = self.service.existing_values(column, [row.values.get(column) for _, row in pending])
            seen = set()
            kept = []
            for index, row in pending:
                value = row.values.get(column)
                if value is not None and value in taken:
                    errors.append(ImportRowError(row=index, message=f"{label} '{value}' already exists"))
                    continue
                if value is not None and value in seen:
                    errors.append(ImportRowError(row=index, message=f"Duplicate {label} '{value}' in this import"))
                    continue
                if value is not None:
                    seen.add(value)
                kept.append((index, row))
            pending = kept
        return pending

    def _build(self, row: PendingRow) -> Any:
        """Create the lookups this row still lacks, then the record itself. Call inside a savepoint."""
        for import_field, name in row.missing:
            reference = import_field.reference
            cache_key = (reference.model, name.lower())
            if self._resolved.get(cache_key) is None:
                obj = reference.model(company_id=self.context.company_id, **{reference.lookup: name})
                self.db.add(obj)
                self.db.flush()
                self._resolved[cache_key] = obj.id
                self._created_refs.append((cache_key, obj))
                logger.debug(f"Created {reference.model.__tablename__} '{name}' during {self.service.plural} import")
            row.values[reference.column] = self._resolved[cache_key]
        return self.service.build(row.values)

    def _forget_refs(self, mark: int) -> None:
        """Lookups created after `mark` were rolled back with their savepoint."""
        for cache_key, _ in self._created_refs[mark:]:
            self._resolved[cache_key] = None
        del self._created_refs[mark:]

    def insert(
        self,
        pending: List[Tuple[int, PendingRow]],
        errors: List[ImportRowError]
    ) -> List[Any]:
        if not pending:
            return []

        mark = len(self._created_refs)
        try:
            with self.db.begin_nested():
                objects = [self._build(row) for _, row in pending]
                self.db.add_all(objects)
            return objects
        except (IntegrityError, DataError) as e:
            self._forget_refs(mark)
            logger.warning(f"Batch insert of {len(pending)} {self.service.plural} failed, retrying per row: {e.orig}")

        created = []
        for index, row in pending:
            mark = len(self._created_refs)
            try:
                with self.db.begin_nested():
                    obj = self._build(row)
                    self.db.add(obj)
                created.append(obj)
            except IntegrityError as e:
                self._forget_refs(mark)
                errors.append(ImportRowError(row=index, message=integrity_error(e).message))
            except DataError as e:
                self._forget_refs(mark)
                logger.info(f"Row {index} of {self.service.plural} import rejected by the database: {e.orig}")
                errors.append(ImportRowError(row=index, message="Value does not fit its column"))
        return created

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def run(self, rows: List[Any]) -> ImportReport:
        if len(rows) > settings.IMPORT_MAX_ROWS:
            raise ValidationError(f"Too many rows: {len(rows)} (limit {settings.IMPORT_MAX_ROWS})")
        if not rows:
            return ImportReport(total_processed=0, success_count=0, error_count=0, errors=[])

        headers: List[str] = []
        for raw in rows:
            if isinstance(raw, dict):
                headers.extend(key for key in raw if key not in headers)
        mapping = self.map_columns(headers)

        errors: List[ImportRowError] = []
        pending: List[Tuple[int, PendingRow]] = []
        for index, raw in enumerate(rows, start=1):
            try:
                pending.append((index, self.validate_row(raw, mapping)))
            except ValidationError as e:
                errors.append(ImportRowError(row=index, message=e.message))

        pending = self.reconcile_unique(pending, errors)
        created = self.insert(pending, errors)
        self.db.commit()

        self._after_import(created)
        errors.sort(key=lambda error: error.row)

        logger.info(
            f"Imported {len(created)} of {len(rows)} {self.service.plural} ({len(errors)} errors)",
            extra={"company_id": self.context.company_id, "entity": self.service.entity, "action": "IMPORT"}
        )
        return ImportReport(
            total_processed=len(rows),
            success_count=len(created),
            error_count=len(errors),
            errors=errors
        )

    def _after_import(self, created: List[Any]) -> None:
        entries = []
        touched = {self.service.plural, *self.service.invalidates}

        for _, obj in self._created_refs:
            ref_service = SERVICES_BY_MODEL.get(type(obj))
            if ref_service is None:
                continue
            touched.add(ref_service.plural)
            entries.append((
                f"{ref_service.entity}_CREATED", ref_service.entity, obj.id,
                f"Created {ref_service.label.lower()} {obj.name} during {self.service.plural} import"
            ))

        for obj in created:
            entries.append((
                f"{self.service.entity}_CREATED", self.service.entity, obj.id,
                f"Imported {self.service.label.lower()} {self.service.describe(obj)}"
            ))

        self.service.cache.invalidate(sorted(touched), self.context.company_id)
        self.service.audit.log_many(entries)


def bulk_create(service: EntityService, rows: List[Any]) -> ImportReport:
    return BulkImporter(service).run(rows)
