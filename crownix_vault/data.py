"""
Vault Data — Entities held by an unlocked vault.

Wire format follows the desktop application's JSON: camelCase keys, custom
fields under ``fields`` with their kind under ``type``, unset optionals
omitted. Timestamps are epoch milliseconds.

Stored rows are parsed permissively. The length and non-empty rules of the
entry forms live in the ``*Form`` schemas and are checked only when an entity
is created or edited, see :meth:`TimestampedModel.validate_form`.
"""
import time
import uuid
import unicodedata
from typing import Annotated, Any, ClassVar, Literal, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    model_serializer,
    model_validator,
)
from pydantic.alias_generators import to_camel


FieldKind = Literal["text", "hidden", "url", "email", "phone"]

FORM_TEXT_MAX_LENGTH = 30

FormText = Annotated[str, StringConstraints(min_length=1, max_length=FORM_TEXT_MAX_LENGTH)]


def now_ms() -> int:
    """Current time in epoch milliseconds."""
    return int(time.time() * 1000)


def new_id() -> str:
    """Generate a globally unique entity id."""
    return str(uuid.uuid4())


def sort_key(value: str) -> tuple[str, str]:
    """Case and accent insensitive ordering key for display names.

    The raw value is the tie breaker so "apple" and "Apple" keep a fixed order.
    """
    decomposed = unicodedata.normalize("NFKD", value)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return base.casefold(), value


class FormModel(BaseModel):
    """Input rules of an entry form, validated against an entity's attributes."""

    model_config = ConfigDict(from_attributes=True, extra="ignore")


class CustomFieldForm(FormModel):
    label: FormText
    value: str = ""


class PasswordItemForm(FormModel):
    title: FormText
    custom_fields: list[CustomFieldForm] = Field(default_factory=list)


class PasswordCategoryForm(FormModel):
    name: FormText


class VaultModel(BaseModel):
    """Base for every persisted vault model."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready representation (wire names, no null optionals)."""
        return self.model_dump(by_alias=True, exclude_none=True)


class TimestampedModel(VaultModel):
    id: str = Field(default_factory=new_id, min_length=1)
    created_at: int = Field(default_factory=now_ms, ge=0)
    updated_at: int = Field(default_factory=now_ms, ge=0)
    is_deleted: bool = False

    form: ClassVar[Optional[type[FormModel]]] = None

    @model_validator(mode="after")
    def validate_timestamps(self) -> "TimestampedModel":
        """Ensure updatedAt is never earlier than createdAt."""
        if self.updated_at < self.created_at:
            raise ValueError(
                f"updatedAt ({self.updated_at}) is earlier than "
                f"createdAt ({self.created_at})"
            )
        return self

    def validate_form(self) -> None:
        """Check the entity against the rules of its entry form.

        Raises:
            pydantic.ValidationError: If a rule is violated.
        """
        if self.form is not None:
            self.form.model_validate(self)

    def form_data(self) -> dict[str, Any]:
        """Values of the attributes the entry form checks."""
        if self.form is None:
            return {}
        return self.model_dump(include=set(self.form.model_fields))


class PasswordCustomField(VaultModel):
    """User defined field attached to a password item."""

    id: str = Field(default_factory=new_id)
    label: str
    kind: FieldKind = Field(default="text", alias="type")
    value: str = ""


class PasswordItem(TimestampedModel):
    """A stored credential.

    ``category_id`` is a soft reference: it may point at a soft-deleted or
    missing category, readers resolve it through
    :meth:`crownix_vault.vault.index.EntityIndex.category_label`.
    """

    form: ClassVar[type[FormModel]] = PasswordItemForm

    title: str
    username: Optional[str] = None
    password: str = ""
    urls: list[str] = Field(default_factory=list)
    icon: Optional[str] = None
    notes: Optional[str] = None
    custom_fields: list[PasswordCustomField] = Field(
        default_factory=list, alias="fields"
    )
    category_id: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    is_favorite: bool = False

    @property
    def display_name(self) -> str:
        return self.title


class PasswordCategory(TimestampedModel):
    """A user defined grouping of password items."""

    form: ClassVar[type[FormModel]] = PasswordCategoryForm

    name: str
    icon: str = "Folder"
    color: str = "bg-gray-900"
    description: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name


class VaultSettings(VaultModel):
    """Per-vault settings; unknown keys are kept as-is."""

    model_config = ConfigDict(extra="allow")

    vault_name: str = "Crownix Vault"
    is_new_user: bool = True

    @model_serializer(mode="wrap")
    def keep_unknown_keys(self, handler) -> dict[str, Any]:
        """Write unknown keys verbatim, ``null`` values included."""
        data = handler(self)
        for key, value in (self.model_extra or {}).items():
            data.setdefault(key, value)
        return data


class DecryptedVault(VaultModel):
    """Plaintext vault payload. Lives only while a session is unlocked."""

    password_items: list[PasswordItem] = Field(default_factory=list)
    password_categories: list[PasswordCategory] = Field(default_factory=list)
    settings: VaultSettings = Field(default_factory=VaultSettings)


DEFAULT_CATEGORIES = (
    ("Social", "bg-blue-900", "Globe", "Social media accounts and networks"),
    ("Work", "bg-orange-900", "Briefcase", "Work-related accounts and tools"),
    ("Finance", "bg-green-900", "DollarSign", "Banking, credit cards, and finance"),
    ("Entertainment", "bg-purple-900", "Gamepad2", "Streaming services and gaming"),
)


def initial_vault() -> DecryptedVault:
    """Content of a brand new vault: default categories, no items."""
    now = now_ms()
    categories = [
        PasswordCategory(
            id=str(idx),
            name=name,
            color=color,
            icon=icon,
            description=description,
            created_at=now,
            updated_at=now,
        )
        for idx, (name, color, icon, description) in enumerate(DEFAULT_CATEGORIES, 1)
    ]
    return DecryptedVault(password_categories=categories)
