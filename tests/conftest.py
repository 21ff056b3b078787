"""Shared fixtures for the Crownix Vault test suite."""
import pytest

from crownix_vault.data import (
    DecryptedVault,
    PasswordCategory,
    PasswordCustomField,
    PasswordItem,
    VaultSettings,
)
from crownix_vault.vault import SessionManager, VaultConfig, VaultLifecycleCoordinator
from crownix_vault.vault.container import VaultHeader
from crownix_vault.vault.crypto import derive_key, generate_salt

# Low KDF cost keeps the suite fast; production uses the 200,000 default.
TEST_ITERATIONS = 1_000


@pytest.fixture
def config():
    return VaultConfig(kdf_iterations=TEST_ITERATIONS, auto_lock_timeout=0.05)


@pytest.fixture
def key():
    return derive_key("correct horse", generate_salt(), TEST_ITERATIONS)


@pytest.fixture
def category():
    return PasswordCategory(
        id="cat-work", name="Work", icon="Briefcase", color="bg-orange-900",
        created_at=1_000, updated_at=1_000,
    )


@pytest.fixture
def vault(category):
    """A small vault with one category and three items."""
    items = [
        PasswordItem(
            id="item-1", title="Banana", username="bob", password="s3cret",
            urls=["https://banana.example"], category_id=category.id,
            tags=["fruit"], created_at=1_000, updated_at=1_000,
        ),
        PasswordItem(
            id="item-2", title="apple", password="pw", is_favorite=True,
            custom_fields=[
                PasswordCustomField(id="f1", label="PIN", kind="hidden", value="1234"),
            ],
            created_at=1_000, updated_at=2_000,
        ),
        PasswordItem(
            id="item-3", title="Cherry", password="pw3", notes="note",
            category_id=category.id, created_at=1_000, updated_at=1_000,
        ),
    ]
    return DecryptedVault(
        password_items=items,
        password_categories=[category],
        settings=VaultSettings(vault_name="Test Vault", is_new_user=False),
    )


@pytest.fixture
def session():
    return SessionManager()


@pytest.fixture
def unlocked_session(session, key, vault):
    header = VaultHeader(
        magic="CROWNIX_VAULT", version="1.0.0", salt="AAAAAAAAAAAAAAAAAAAAAA==",
        iv="AAAAAAAAAAAAAAAA",
    )
    session.unlock(key, header, vault)
    return session


@pytest.fixture
def index(unlocked_session):
    return unlocked_session.index


@pytest.fixture
def coordinator(config):
    return VaultLifecycleCoordinator(config=config)
