"""
Brief: Second fixture module used to provoke definition name collisions.

Inputs:
  - None

Outputs:
  - Address: same class name as sample_types.Address with a different shape.
"""

from dataclasses import dataclass, field


@dataclass
class Address:
    line: str = field(metadata={"json": "line"})
