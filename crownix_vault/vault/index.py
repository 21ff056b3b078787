"""
Entity Index — In-memory keyed store for the entities of an unlocked vault.

Two independent tables, ``items`` and ``categories``, keyed by entity id.
There is no foreign key between them: ``PasswordItem.category_id`` is a soft
reference, and cascades (clearing references before a permanent category
delete) are explicit operations.

Every ``create``/``update``/``delete`` publishes an :class:`IndexEvent` to the
subscribed listeners, synchronously and in-process.

Security Note:
    Entities hold plaintext secrets. Only ids and counts are logged.
"""
import logging
import warnings
from dataclasses import dataclass
from typing import Callable, Generic, Iterable, Optional, TypeVar

from pydantic import ValidationError

from .. import conf
from ..data import (
    DecryptedVault,
    PasswordCategory,
    PasswordItem,
    TimestampedModel,
    VaultSettings,
    now_ms,
    sort_key,
)
from ..exceptions import (
    DanglingCategoryReferenceWarning,
    DuplicateIdError,
    InvalidEntityError,
    NotFoundError,
    SessionLockedError,
    VaultStateError,
)

logger = logging.getLogger("crownix.vault")

E = TypeVar("E", bound=TimestampedModel)

ITEMS = "items"
CATEGORIES = "categories"
SETTINGS = "settings"


@dataclass(frozen=True)
class IndexEvent:
    """Mutation notification published by the index."""

    table: str
    action: str  # "create", "update" or "delete"
    entity_id: Optional[str] = None


Listener = Callable[[IndexEvent], None]


class EntityTable(Generic[E]):
    """One keyed table of the index.

    Rows are copied on the way in and out, so callers never hold a reference
    to the stored entity.
    """

    def __init__(self, name: str, model: type[E], index: "EntityIndex"):
        self.name = name
        self.model = model
        self._index = index
        self._rows: dict[str, E] = {}

    def __len__(self) -> int:
        self._index._ensure_unlocked()
        return len(self._rows)

    def __contains__(self, entity_id: object) -> bool:
        self._index._ensure_unlocked()
        return entity_id in self._rows

    def _check_type(self, entity: object) -> None:
        if not isinstance(entity, self.model):
            raise TypeError(
                f"{self.name} table stores {self.model.__name__}, "
                f"got {type(entity).__name__}"
            )

    def _check_form(self, entity: E, stored: Optional[E] = None) -> None:
        """Apply the entry form rules to new or edited form values.

        Form values equal to the stored row are not checked again.
        """
        if stored is not None and entity.form_data() == stored.form_data():
            return
        try:
            entity.validate_form()
        except ValidationError as err:
            raise InvalidEntityError(
                f"Invalid {self.model.__name__}: {err.error_count()} rule(s) violated"
            ) from err

    def _require(self, entity_id: str) -> E:
        try:
            return self._rows[entity_id]
        except KeyError:
            raise NotFoundError(
                f"No {self.model.__name__} with id {entity_id!r}"
            ) from None

    def load_all(self, entities: Iterable[E]) -> int:
        """Bulk-insert the rows of a freshly decrypted vault.

        The batch is validated as a whole before anything is inserted.

        Raises:
            VaultStateError: If the table is already populated.
            DuplicateIdError: If the batch repeats an id.
        """
        self._index._ensure_unlocked()
        if self._rows:
            raise VaultStateError(
                f"{self.name} table is already populated; lock the session first"
            )
        rows: dict[str, E] = {}
        for entity in entities:
            self._check_type(entity)
            if entity.id in rows:
                raise DuplicateIdError(
                    f"Duplicate {self.model.__name__} id {entity.id!r} in vault"
                )
            rows[entity.id] = entity.model_copy(deep=True)
        self._rows = rows
        logger.debug("Loaded %d row(s) into %s", len(rows), self.name)
        return len(rows)

    def create(self, entity: E) -> E:
        """Insert a new row.

        Raises:
            DuplicateIdError: If the id already exists.
            InvalidEntityError: If the entity breaks its entry form rules.
        """
        self._index._ensure_unlocked()
        self._check_type(entity)
        if entity.id in self._rows:
            raise DuplicateIdError(
                f"{self.model.__name__} with id {entity.id!r} already exists"
            )
        self._check_form(entity)
        self._rows[entity.id] = entity.model_copy(deep=True)
        logger.debug("Index create: table=%s id=%s", self.name, entity.id)
        self._index._notify(IndexEvent(self.name, "create", entity.id))
        return entity.model_copy(deep=True)

    def get_all(self) -> list[E]:
        """All rows ordered by display title/name, case-insensitively."""
        self._index._ensure_unlocked()
        rows = sorted(
            self._rows.values(), key=lambda row: sort_key(row.display_name)
        )
        return [row.model_copy(deep=True) for row in rows]

    def get_by_id(self, entity_id: str) -> Optional[E]:
        self._index._ensure_unlocked()
        row = self._rows.get(entity_id)
        return row.model_copy(deep=True) if row is not None else None

    def update(self, entity: E) -> E:
        """Replace the row with the same id and stamp ``updated_at``.

        The stamp is strictly greater than the stored value, so two updates
        within the same millisecond remain ordered.

        Raises:
            NotFoundError: If no row has this id.
            InvalidEntityError: If edited form values break the form rules.
        """
        self._index._ensure_unlocked()
        self._check_type(entity)
        stored = self._require(entity.id)
        self._check_form(entity, stored)
        stamp = max(now_ms(), stored.updated_at + 1, entity.created_at)
        row = entity.model_copy(deep=True, update={"updated_at": stamp})
        self._rows[entity.id] = row
        logger.debug("Index update: table=%s id=%s", self.name, entity.id)
        self._index._notify(IndexEvent(self.name, "update", entity.id))
        return row.model_copy(deep=True)

    def delete(self, entity_id: str) -> None:
        """Permanently remove a row. No cascading cleanup happens here.

        Raises:
            NotFoundError: If no row has this id.
        """
        self._index._ensure_unlocked()
        self._require(entity_id)
        del self._rows[entity_id]
        logger.debug("Index delete: table=%s id=%s", self.name, entity_id)
        self._index._notify(IndexEvent(self.name, "delete", entity_id))

    def set_deleted(self, entity_id: str, deleted: bool = True) -> E:
        """Soft delete (or restore) a row through :meth:`update`."""
        self._index._ensure_unlocked()
        stored = self._require(entity_id)
        return self.update(stored.model_copy(update={"is_deleted": deleted}))

    def restore(self, entity_id: str) -> E:
        return self.set_deleted(entity_id, False)

    def _clear(self) -> None:
        self._rows = {}


class EntityIndex:
    """Items and categories of the unlocked vault, plus its settings.

    The index is inert until :meth:`load` is called with a decrypted vault and
    becomes inert again after :meth:`clear`; while inert every data access
    raises :class:`SessionLockedError`.
    """

    def __init__(self):
        self.items: EntityTable[PasswordItem] = EntityTable(ITEMS, PasswordItem, self)
        self.categories: EntityTable[PasswordCategory] = EntityTable(
            CATEGORIES, PasswordCategory, self
        )
        self._settings: Optional[VaultSettings] = None
        self._loaded = False
        self._listeners: list[Listener] = []

    @property
    def loaded(self) -> bool:
        return self._loaded

    def _ensure_unlocked(self) -> None:
        if not self._loaded:
            raise SessionLockedError("Vault is locked")

    # ------------------------------------------------------------------
    # Observer interface
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> None:
        """Register a callable invoked with every :class:`IndexEvent`."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def _notify(self, event: IndexEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(
                    "Index listener %r failed on %s/%s",
                    listener, event.table, event.action,
                )

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def load(self, vault: DecryptedVault) -> None:
        """Populate both tables and the settings from a decrypted vault.

        Raises:
            VaultStateError: If the index is already populated.
        """
        if self._loaded:
            raise VaultStateError(
                "Entity index is already populated; lock the session first"
            )
        self._loaded = True
        try:
            self.items.load_all(vault.password_items)
            self.categories.load_all(vault.password_categories)
        except Exception:
            self.clear()
            raise
        self._settings = vault.settings.model_copy(deep=True)
        logger.info(
            "Entity index loaded: %d item(s), %d category(ies)",
            len(self.items._rows), len(self.categories._rows),
        )

    def clear(self) -> None:
        """Drop every row and return to the inert state. Idempotent."""
        self.items._clear()
        self.categories._clear()
        self._settings = None
        self._loaded = False

    def snapshot(self) -> DecryptedVault:
        """Read the current contents back into a :class:`DecryptedVault`."""
        self._ensure_unlocked()
        return DecryptedVault(
            password_items=self.items.get_all(),
            password_categories=self.categories.get_all(),
            settings=self.settings,
        )

    @property
    def settings(self) -> VaultSettings:
        self._ensure_unlocked()
        return self._settings.model_copy(deep=True)

    def update_settings(self, settings: VaultSettings) -> VaultSettings:
        self._ensure_unlocked()
        self._settings = settings.model_copy(deep=True)
        self._notify(IndexEvent(SETTINGS, "update"))
        return self.settings

    # ------------------------------------------------------------------
    # List view queries
    # ------------------------------------------------------------------

    def active_items(self) -> list[PasswordItem]:
        return [item for item in self.items.get_all() if not item.is_deleted]

    def favorite_items(self) -> list[PasswordItem]:
        return [item for item in self.active_items() if item.is_favorite]

    def items_in_category(self, category_id: str) -> list[PasswordItem]:
        return [
            item for item in self.active_items()
            if item.category_id == category_id
        ]

    def trash(self) -> tuple[list[PasswordItem], list[PasswordCategory]]:
        """Soft-deleted items and categories."""
        return (
            [item for item in self.items.get_all() if item.is_deleted],
            [cat for cat in self.categories.get_all() if cat.is_deleted],
        )

    # ------------------------------------------------------------------
    # Category references
    # ------------------------------------------------------------------

    def category_label(self, item: PasswordItem) -> str:
        """Resolve an item's advisory category reference to a display label.

        A soft-deleted category shows as "<name> (Deleted)"; an unset or
        missing one shows as "Uncategorized", the latter with a
        :class:`DanglingCategoryReferenceWarning`.
        """
        if not item.category_id:
            return conf.UNCATEGORIZED_LABEL
        category = self.categories.get_by_id(item.category_id)
        if category is None:
            warnings.warn(
                f"Item {item.id!r} references missing category "
                f"{item.category_id!r}",
                DanglingCategoryReferenceWarning,
                stacklevel=2,
            )
            return conf.UNCATEGORIZED_LABEL
        if category.is_deleted:
            return category.name + conf.DELETED_SUFFIX
        return category.name

    def uncategorize_item(self, item_id: str) -> PasswordItem:
        self._ensure_unlocked()
        item = self.items._require(item_id)
        return self.items.update(item.model_copy(update={"category_id": None}))

    def clear_category_references(self, category_id: str) -> list[str]:
        """Unset ``category_id`` on every item pointing at the category.

        Returns:
            Ids of the updated items.
        """
        self._ensure_unlocked()
        referencing = [
            item for item in self.items._rows.values()
            if item.category_id == category_id
        ]
        for item in referencing:
            self.items.update(item.model_copy(update={"category_id": None}))
        return [item.id for item in referencing]

    def delete_category_permanently(self, category_id: str) -> list[str]:
        """Clear item references to a category, then hard delete it.

        Raises:
            NotFoundError: If the category does not exist; nothing is changed.

        Returns:
            Ids of the items whose reference was cleared.
        """
        self._ensure_unlocked()
        self.categories._require(category_id)
        cleared = self.clear_category_references(category_id)
        self.categories.delete(category_id)
        logger.info(
            "Category %s deleted permanently, %d item(s) uncategorized",
            category_id, len(cleared),
        )
        return cleared
