# handsup/services/contact_list.py
# The people who receive an SOS text, persisted in the key-value store

from typing import List, Optional, Tuple
from uuid import uuid4

import structlog
from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from handsup.services.kv_store import KeyValueStore, PersistenceError

logger = structlog.get_logger(__name__)


class EmergencyContact(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid4()), description="Identifier from the device address book.")
    name: str = ""
    phone_numbers: List[str] = Field(default_factory=list)

    @property
    def primary_phone(self) -> Optional[str]:
        for number in self.phone_numbers:
            if number.strip():
                return number.strip()
        return None


_contact_list = TypeAdapter(List[EmergencyContact])


class ContactListError(ValueError):
    """A contact was rejected; the message is meant for the user."""


class EmergencyContactList:
    def __init__(self, kv: KeyValueStore, key: str = "EmergencyContacts"):
        self.kv = kv
        self.key = key
        self._contacts: Tuple[EmergencyContact, ...] = ()

    @property
    def contacts(self) -> Tuple[EmergencyContact, ...]:
        return self._contacts

    async def load(self) -> Tuple[EmergencyContact, ...]:
        try:
            raw = await self.kv.get(self.key)
            self._contacts = tuple(_contact_list.validate_json(raw)) if raw else ()
        except (PersistenceError, ValidationError) as e:
            logger.error("contacts_load_failed", key=self.key, error=str(e))
            self._contacts = ()
        logger.info("contacts_loaded", count=len(self._contacts))
        return self._contacts

    async def _commit(self, contacts) -> None:
        self._contacts = tuple(contacts)
        try:
            await self.kv.set(self.key, _contact_list.dump_json(list(self._contacts)).decode("utf-8"))
        except PersistenceError as e:
            logger.error("contacts_save_failed", key=self.key, error=str(e))

    async def add(self, contact: EmergencyContact) -> EmergencyContact:
        if any(existing.id == contact.id for existing in self._contacts):
            raise ContactListError("Contact already in emergency list")
        if contact.primary_phone is None:
            raise ContactListError("Selected contact has no phone number")
        await self._commit(self._contacts + (contact,))
        logger.info("contact_added", contact_id=contact.id)
        return contact

    async def remove(self, contact_id: str) -> int:
        kept = [c for c in self._contacts if c.id != contact_id]
        removed = len(self._contacts) - len(kept)
        await self._commit(kept)
        return removed

    async def remove_at(self, *indexes: int) -> int:
        doomed = {i for i in indexes if 0 <= i < len(self._contacts)}
        await self._commit(c for i, c in enumerate(self._contacts) if i not in doomed)
        return len(doomed)

    async def clear(self) -> None:
        await self._commit(())

    def phone_numbers(self) -> List[str]:
        """First usable number of each contact, in list order."""
        return [c.primary_phone for c in self._contacts if c.primary_phone is not None]
