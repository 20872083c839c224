"""Abstract repository interface (port) for ApplicationRecord persistence."""

from abc import ABC, abstractmethod

from tes_forms.domain.entities import ApplicationRecord, FormType


class ApplicationRepository(ABC):
    """Port for application persistence — implemented in the infrastructure layer."""

    @abstractmethod
    async def get_by_id(self, record_id: str) -> ApplicationRecord | None:
        """Retrieve a single record by its id."""
        ...

    @abstractmethod
    async def list_by_type(self, form_type: FormType) -> list[ApplicationRecord]:
        """Retrieve every record of a type, newest first (ties broken by id)."""
        ...

    @abstractmethod
    async def create(self, record: ApplicationRecord) -> ApplicationRecord:
        """Persist a new record and return it."""
        ...

    @abstractmethod
    async def update(self, record: ApplicationRecord) -> ApplicationRecord:
        """Replace the data payload and updated_at of an existing record."""
        ...
