"""Generic repository implementing the soft-delete lifecycle over any LifecycleMixin model."""

from dataclasses import dataclass, field
from typing import Any, Generic, List, Optional, Sequence, TypeVar

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.core.exceptions import BusinessRuleViolation, SystemProtectedError
from gatekeeper.db.base import LifecycleMixin

ModelT = TypeVar("ModelT", bound=LifecycleMixin)

MAX_PAGE_SIZE = 200


@dataclass
class QueryOptions:
    """Search, sort and paging parameters for listing queries."""

    search: Optional[str] = None
    sort_column: Optional[str] = None
    sort_direction: str = "asc"
    skip: int = 0
    take: int = 20

    @property
    def descending(self) -> bool:
        return (self.sort_direction or "").lower() == "desc"


@dataclass
class PageResult(Generic[ModelT]):
    items: List[ModelT] = field(default_factory=list)
    total: int = 0


def apply_dict_updates(entity: object, update_data: dict[str, Any], excluded_attrs: Optional[set[str]] = None) -> None:
    """Copy known attributes from ``update_data`` onto an ORM entity, skipping excluded ones."""
    excluded_attrs = excluded_attrs or set()
    for key, value in update_data.items():
        if key in excluded_attrs:
            continue
        if hasattr(entity, key):
            setattr(entity, key, value)


class LifecycleRepository(Generic[ModelT]):
    """Active -> Deleted -> Active | Purged transitions plus paged listing.

    Subclasses set ``model`` and may whitelist ``search_columns`` and
    ``sort_columns`` (public name -> attribute name).
    """

    model: type
    label: str = "record"
    search_columns: Sequence[str] = ()
    sort_columns: dict[str, str] = {}
    default_sort: str = "created_at"

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, entity_id: int, include_deleted: bool = False) -> Optional[ModelT]:
        entity = await self.session.get(self.model, entity_id)
        if entity is None or (entity.is_deleted and not include_deleted):
            return None
        return entity

    async def add(self, entity: ModelT, actor_id: Optional[int] = None) -> ModelT:
        entity.mark_created(actor_id)
        self.session.add(entity)
        await self.session.flush()
        return entity

    async def insert_unique(self, entity: ModelT, actor_id: Optional[int] = None) -> bool:
        """Insert inside a SAVEPOINT; False when a unique index rejects the row."""
        entity.mark_created(actor_id)
        try:
            async with self.session.begin_nested():
                self.session.add(entity)
        except IntegrityError:
            return False
        return True

    async def update(
        self,
        entity: ModelT,
        update_data: dict[str, Any],
        actor_id: Optional[int] = None,
        excluded_attrs: Optional[set[str]] = None,
    ) -> ModelT:
        excluded = {"id", "is_deleted", "created_at", "created_by_user_id"} | (excluded_attrs or set())
        apply_dict_updates(entity, update_data, excluded)
        entity.mark_modified(actor_id)
        await self.session.flush()
        return entity

    async def soft_delete(self, entity_id: int, actor_id: Optional[int] = None) -> bool:
        """Move an Active record to Deleted.

        Returns False without touching anything when the record is missing or
        already deleted.

        Raises:
            SystemProtectedError: If the record is a system record.
        """
        entity = await self.session.get(self.model, entity_id)
        if entity is None or entity.is_deleted:
            return False
        if entity.is_protected:
            raise SystemProtectedError(f"System {self.label}s cannot be deleted.")
        entity.mark_modified(actor_id, is_deleted=True)
        await self.session.flush()
        return True

    async def restore(self, entity_id: int, actor_id: Optional[int] = None) -> bool:
        """Move a Deleted record back to Active; no-op in any other state."""
        entity = await self.session.get(self.model, entity_id)
        if entity is None or not entity.is_deleted:
            return False
        entity.mark_modified(actor_id, is_deleted=False)
        await self.session.flush()
        return True

    async def hard_delete(self, entity_id: int) -> bool:
        """Permanently remove a Deleted record.

        Raises:
            SystemProtectedError: If the record is a system record.
            BusinessRuleViolation: If the record has not been soft-deleted first.
        """
        entity = await self.session.get(self.model, entity_id)
        if entity is None:
            return False
        if entity.is_protected:
            raise SystemProtectedError(f"System {self.label}s cannot be deleted.")
        if not entity.is_deleted:
            raise BusinessRuleViolation(
                f"The {self.label} must be moved to the recycle bin before it can be permanently deleted."
            )
        await self.session.delete(entity)
        await self.session.flush()
        return True

    async def list_deleted(self) -> List[ModelT]:
        """Recycle bin contents, most recently modified first."""
        stmt = (
            select(self.model)
            .where(self.model.is_deleted.is_(True))
            .order_by(func.coalesce(self.model.modified_at, self.model.created_at).desc(), self.model.id.desc())
        )
        return list((await self.session.scalars(stmt)).all())

    async def list_page(self, options: QueryOptions, *criteria) -> PageResult[ModelT]:
        """Active records matching ``criteria`` and the search term, sorted and paged."""
        stmt = select(self.model).where(self.model.is_deleted.is_(False), *criteria)

        term = (options.search or "").strip()
        if term and self.search_columns:
            pattern = f"%{term}%"
            stmt = stmt.where(or_(*[getattr(self.model, c).ilike(pattern) for c in self.search_columns]))

        total = await self.session.scalar(select(func.count()).select_from(stmt.subquery()))

        column_name = self.sort_columns.get((options.sort_column or "").lower(), self.default_sort)
        column = getattr(self.model, column_name)
        stmt = stmt.order_by(column.desc() if options.descending else column.asc(), self.model.id.asc())
        stmt = stmt.offset(max(options.skip, 0)).limit(min(max(options.take, 1), MAX_PAGE_SIZE))

        items = list((await self.session.scalars(stmt)).all())
        return PageResult(items=items, total=total or 0)
