"""
Base repository with the list/create/update/delete operations of one remote collection.
Repositories handle remote store access through the session's HttpClient.
"""

from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from pydantic import ValidationError as SchemaValidationError

from timesheet_pro.core.exceptions import RemoteStoreError
from timesheet_pro.core.integrations.http.http_client import HttpClient
from timesheet_pro.schemas.base import WireModel

ModelType = TypeVar("ModelType", bound=WireModel)


class BaseRepository(Generic[ModelType]):
    """Base repository with common CRUD operations."""
    
    def __init__(self, model: Type[ModelType], client: HttpClient, resource: str, label: str):
        """
        Initialize repository.
        
        Args:
            model: Schema class of the collection's items
            client: Authenticated HTTP client
            resource: Resource path under the API root
            label: Human-readable singular name used in messages
        """
        self.model = model
        self.client = client
        self.resource = resource
        self.label = label
    
    def _from_wire(self, row: Dict[str, Any]) -> ModelType:
        try:
            return self.model.model_validate(row)
        except SchemaValidationError as e:
            raise RemoteStoreError(f"Malformed {self.label} received", details=e.errors()) from e
    
    async def list(self) -> List[ModelType]:
        """
        List every record of the collection.
        
        Returns:
            List of records
        """
        rows = await self.client.get(self.resource)
        return [self._from_wire(row) for row in rows or []]
    
    async def create(self, item: ModelType) -> Optional[int]:
        """
        Create a record.
        
        Args:
            item: Record carrying a client-provisional id
            
        Returns:
            Server-assigned id, if the store returned one
        """
        body = await self.client.post(self.resource, json=item.to_wire())
        if isinstance(body, dict) and body.get("id") is not None:
            return int(body["id"])
        return None
    
    async def update(self, item: ModelType) -> None:
        """
        Update a record by id.
        
        Args:
            item: Record with its new content
        """
        await self.client.put(f"{self.resource}/{item.id}", json=item.to_wire())
    
    async def delete(self, id: int) -> None:
        """
        Delete a record by id.
        
        Args:
            id: Record ID
        """
        await self.client.delete(f"{self.resource}/{id}")
