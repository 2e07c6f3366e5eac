from abc import ABC, abstractmethod
from typing import Any


class AbstractMailProvider(ABC):
	"""Interface for disposable-email providers.

	Methods return the provider's JSON bodies untouched so routes can pass
	them through. Failures are raised as UpstreamAppError carrying the
	provider's status code and error body.
	"""

	@abstractmethod
	async def list_domains(self) -> Any:
		"""Return the provider's domain collection."""
		...

	@abstractmethod
	async def create_account(self, address: str, password: str) -> Any:
		"""Register a mailbox with the given address and password."""
		...

	@abstractmethod
	async def get_token(self, address: str, password: str) -> str:
		"""Exchange mailbox credentials for a bearer token."""
		...

	@abstractmethod
	async def list_messages(self, token: str, *, page: int | None = None) -> Any:
		"""Return the message collection of the mailbox owning ``token``."""
		...

	@abstractmethod
	async def get_message(self, token: str, message_id: str) -> Any:
		"""Return one message by id."""
		...

	@abstractmethod
	async def delete_message(self, token: str, message_id: str) -> None:
		"""Delete one message by id."""
		...

	async def aclose(self) -> None:
		"""Release network resources held by the provider client."""
		return None
