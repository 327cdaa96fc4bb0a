"""
Entity descriptors: the per-resource configuration the generic handler runs on.

A descriptor names the table, the mutable string fields and their rules, and
the words used in client-facing messages. Adding a resource means adding a
descriptor here (and its table in `db/schema.sql`), not new handler code.
"""

from __future__ import annotations

from dataclasses import dataclass

MAX_FIELD_LENGTH = 255

# Ids are Postgres `integer` identity columns.
MAX_ENTITY_ID = 2**31 - 1

# Characters trimmed from input: ECMAScript whitespace and line terminators.
TRIM_CHARS = (
    "\t\n\v\f\r \u00a0\u1680"
    "\u2000\u2001\u2002\u2003\u2004\u2005\u2006\u2007\u2008\u2009\u200a"
    "\u2028\u2029\u202f\u205f\u3000\ufeff"
)

TEXT = "text"
EMAIL = "email"


@dataclass(frozen=True)
class FieldSpec:
    name: str
    label: str
    kind: str = TEXT
    max_length: int = MAX_FIELD_LENGTH
    unique: bool = False

    def normalize(self, value: str) -> str:
        value = value.strip(TRIM_CHARS)
        if self.kind == EMAIL:
            return value.lower()
        return value


@dataclass(frozen=True)
class EntityDescriptor:
    name: str
    plural: str
    label: str
    table: str
    fields: tuple[FieldSpec, ...]

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(f.name for f in self.fields)

    @property
    def unique_fields(self) -> tuple[FieldSpec, ...]:
        return tuple(f for f in self.fields if f.unique)

    @property
    def path(self) -> str:
        return f"/api/{self.plural}"

    # Client-facing messages.

    def invalid_id_message(self) -> str:
        return f"Invalid {self.name} id"

    def not_found_message(self) -> str:
        return f"{self.label} not found"

    def already_deleted_message(self) -> str:
        return f"{self.label} already deleted"

    def deleted_message(self) -> str:
        return f"{self.label} deleted successfully"

    def failure_message(self, action: str, *, many: bool = False) -> str:
        return f"Failed to {action} {self.plural if many else self.name}"


USERS = EntityDescriptor(
    name="user",
    plural="users",
    label="User",
    table="users",
    fields=(
        FieldSpec("name", "Name"),
        FieldSpec("email", "Email", kind=EMAIL, unique=True),
    ),
)

ITEMS = EntityDescriptor(
    name="item",
    plural="items",
    label="Item",
    table="items",
    fields=(
        FieldSpec("name", "Name"),
        FieldSpec("description", "Description"),
    ),
)

PRODUCTS = EntityDescriptor(
    name="product",
    plural="products",
    label="Product",
    table="products",
    fields=(
        FieldSpec("name", "Name"),
        FieldSpec("description", "Description"),
    ),
)

DESCRIPTORS: tuple[EntityDescriptor, ...] = (USERS, ITEMS, PRODUCTS)
