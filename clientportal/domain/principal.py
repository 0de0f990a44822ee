from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class OwnerPrincipal:
    # Authenticated supplier; owns every record it mutates.
    user_id: int


@dataclass(frozen=True)
class LinkPrincipal:
    # Anonymous holder of a project share token; read-only, single project.
    token: str


# None stands for an unauthenticated request.
Principal = Union[OwnerPrincipal, LinkPrincipal, None]
