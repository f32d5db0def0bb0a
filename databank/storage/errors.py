"""
Databank error taxonomy.

Every backend normalizes its failures to these classes where it can
classify them. Anything a backend cannot classify is raised verbatim
from the underlying store client.
"""

from typing import Optional


class DatabankError(Exception):
    """Base exception for databank operations."""
    pass


class NotConnectedError(DatabankError):
    """Operation attempted while the databank is disconnected."""
    
    def __init__(self, message: str = "Databank is not connected"):
        super().__init__(message)


class AlreadyConnectedError(DatabankError):
    """connect() called on a databank that is already connected."""
    
    def __init__(self, message: str = "Databank is already connected"):
        super().__init__(message)


class ThingError(DatabankError):
    """Base for errors about a single (type, id) thing."""
    
    def __init__(self, type_: str, id_: str, message: Optional[str] = None):
        self.type_ = type_
        self.id_ = id_
        super().__init__(message or self._default_message())
    
    def _default_message(self) -> str:
        return f"{self.type_} {self.id_!r}"


class AlreadyExistsError(ThingError):
    """A thing with the same type and id already exists."""
    
    def _default_message(self) -> str:
        return f"{self.type_} {self.id_!r} already exists"


class NotExistsError(ThingError):
    """No thing with the given type and id exists."""
    
    def _default_message(self) -> str:
        return f"{self.type_} {self.id_!r} does not exist"
