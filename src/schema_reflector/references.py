"""Brief: Per-call definitions table, naming and cycle tracking.

Inputs:
  - ReflectorConfig for naming, reference root and lookup options.

Outputs:
  - ReflectContext: the mutable state threaded through one reflect call.

Notes:
  - A named composite type is registered before its fields are walked. The
    registered node is filled in place, so a cycle back to it can be answered
    with a ``$ref`` immediately and the definition is complete once the outer
    walk returns.
  - With ``do_not_reference`` nothing is published while walking; a node is
    only moved into the table when a cycle needs a ``$ref`` to terminate.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Set, Tuple

from .config.reflector_config import ReflectorConfig
from .descriptor import TypeDescriptor, describe
from .exceptions import CapabilityError, ConfigurationError, DefinitionError
from .schema import Schema
from .schema_id import ID, json_pointer

logger = logging.getLogger(__name__)


class ReflectContext:
    """Brief: Definitions table plus visited-type bookkeeping for one call.

    Inputs:
      - config: Reflector configuration (read only).

    Outputs:
      - ReflectContext; discard after the call finishes.
    """

    def __init__(self, config: ReflectorConfig) -> None:
        self.config = config
        self.definitions: Dict[str, Schema] = {}
        self.referenced: Set[str] = set()
        self._names: Dict[Any, str] = {}
        self._owners: Dict[str, Any] = {}
        self._building: Dict[Any, Schema] = {}
        # Only concrete types can be ignored; anonymous generics share identities by kind.
        self._ignored = {
            d.identity for d in map(describe, config.ignored_types) if d.py_type is not None
        }

    def is_ignored(self, descriptor: TypeDescriptor) -> bool:
        return descriptor.identity in self._ignored

    def definition_name(self, descriptor: TypeDescriptor) -> str:
        """Brief: Return the stable, collision-free definition name for a type.

        Inputs:
          - descriptor: Named type.

        Outputs:
          - str: ``Name``; on collision ``module_tail.Name``, then the fully
            qualified name, then ``Name2``, ``Name3``...
        """

        identity = descriptor.identity
        known = self._names.get(identity)
        if known is not None:
            return known

        base = ""
        if self.config.namer is not None:
            base = self.config.namer(descriptor) or ""
        base = base or descriptor.name or descriptor.qualified_name

        candidates = [base]
        if descriptor.module:
            tail = descriptor.module.rsplit(".", 1)[-1]
            candidates.append(f"{tail}.{base}")
            candidates.append(f"{descriptor.module}.{descriptor.qualname or base}")
        name = next((c for c in candidates if c not in self._owners), "")
        counter = 2
        while not name:
            candidate = f"{base}{counter}"
            if candidate not in self._owners:
                name = candidate
            counter += 1
        if name != base:
            logger.debug("Definition name %s already taken; using %s for %s", base, name, descriptor.qualified_name)

        self._names[identity] = name
        self._owners[name] = identity
        return name

    def ref_to(self, name: str) -> Schema:
        """Return a fresh ``$ref`` node pointing at definition ``name``."""

        self.referenced.add(name)
        return Schema(ref=self.config.reference_root + json_pointer(name))

    def is_defined(self, descriptor: TypeDescriptor) -> bool:
        name = self._names.get(descriptor.identity)
        return name is not None and name in self.definitions

    def is_building(self, descriptor: TypeDescriptor) -> bool:
        return descriptor.identity in self._building

    def begin(self, descriptor: TypeDescriptor, node: Schema) -> None:
        """Mark ``descriptor`` as in progress, publishing ``node`` unless inlining."""

        self._building[descriptor.identity] = node
        if not self.config.do_not_reference:
            self.definitions[self.definition_name(descriptor)] = node

    def end(self, descriptor: TypeDescriptor) -> None:
        self._building.pop(descriptor.identity, None)

    def cycle_ref(self, descriptor: TypeDescriptor) -> Schema:
        """Brief: Break a structural cycle with a ``$ref`` to the in-progress node.

        Inputs:
          - descriptor: Type currently being built higher up the recursion.

        Outputs:
          - Schema: ``$ref`` node; the in-progress node is published first when
            inlining is otherwise requested.
        """

        name = self.definition_name(descriptor)
        if name not in self.definitions:
            logger.debug("Publishing %s to break a reference cycle", name)
            self.definitions[name] = self._building[descriptor.identity]
        return self.ref_to(name)

    def extend_alias_chain(self, chain: Tuple[Any, ...], descriptor: TypeDescriptor) -> Tuple[Any, ...]:
        """Brief: Record one json_schema_alias() hop, rejecting types that alias back to themselves.

        Inputs:
          - chain: Identities already substituted for the type being walked.
          - descriptor: Type whose alias is about to be followed.

        Outputs:
          - Tuple: ``chain`` plus ``descriptor``'s identity.

        Raises:
          - CapabilityError: ``descriptor`` already appears in ``chain``.
        """

        if descriptor.identity in chain:
            names = " -> ".join(str(getattr(i, "__qualname__", i)) for i in chain)
            raise CapabilityError(f"json_schema_alias() cycle: {names} -> {descriptor.qualified_name}")
        return chain + (descriptor.identity,)

    def lookup_id(self, descriptor: TypeDescriptor) -> Optional[ID]:
        """Brief: Ask the configured lookup for an external identifier.

        Inputs:
          - descriptor: Type about to be reflected.

        Outputs:
          - ID or None when no lookup is configured or it returned "".

        Raises:
          - ConfigurationError: when the returned identifier is not a valid
            absolute http(s) URI.
        """

        if self.config.lookup is None:
            return None
        value = self.config.lookup(descriptor)
        if not value:
            return None
        identifier = ID(value)
        try:
            identifier.validate()
        except ValueError as exc:
            raise ConfigurationError(
                f"lookup returned invalid id {value!r} for {descriptor.qualified_name}: {exc}"
            ) from exc
        return identifier

    def verify(self) -> None:
        """Brief: Check every issued ``$ref`` resolves to a finished definition.

        Inputs:
          - None.

        Outputs:
          - None.

        Raises:
          - DefinitionError: dangling reference or unfinished definition.
        """

        if self._building:
            raise DefinitionError(f"definitions still in progress: {sorted(map(str, self._building))}")
        missing = sorted(self.referenced - set(self.definitions))
        if missing:
            raise DefinitionError(f"references without definitions: {', '.join(missing)}")
