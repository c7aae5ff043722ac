"""schema-reflector: derive JSON Schema documents from Python types."""

from .config.reflector_config import ReflectorConfig
from .descriptor import EMBED, URI, FieldDescriptor, Kind, RawJSON, Tags, TypeDescriptor, UInt, describe
from .exceptions import (
    CapabilityError,
    ConfigurationError,
    DefinitionError,
    ReflectionError,
    SchemaDocumentError,
    UnsupportedTypeError,
)
from .reflector import Reflector, reflect
from .schema import DRAFT_2020_12, UNSET, Schema
from .schema_id import ID
from .utils.document_cache import DocumentCache

__all__ = [
    "CapabilityError",
    "ConfigurationError",
    "DRAFT_2020_12",
    "DefinitionError",
    "DocumentCache",
    "EMBED",
    "FieldDescriptor",
    "ID",
    "Kind",
    "RawJSON",
    "ReflectionError",
    "Reflector",
    "ReflectorConfig",
    "Schema",
    "SchemaDocumentError",
    "Tags",
    "TypeDescriptor",
    "UInt",
    "UNSET",
    "URI",
    "UnsupportedTypeError",
    "describe",
    "reflect",
]
