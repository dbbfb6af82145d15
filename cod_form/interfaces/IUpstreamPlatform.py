from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class UserError:
    field: Optional[List[str]]
    message: str


@dataclass(frozen=True)
class DraftOrderResult:
    """Outcome of draftOrderCreate. draft_id is None when nothing was created."""

    draft_id: Optional[str] = None
    name: Optional[str] = None
    user_errors: List[UserError] = field(default_factory=list)


@dataclass(frozen=True)
class CompletedOrderResult:
    """Outcome of draftOrderComplete. order_id is the platform gid, if any."""

    order_id: Optional[str] = None
    order_name: Optional[str] = None
    user_errors: List[UserError] = field(default_factory=list)


class IUpstreamPlatform(ABC):
    @abstractmethod
    def create_draft_order(self, shop: str, access_token: str, draft_input: Dict[str, Any]) -> DraftOrderResult:
        pass

    @abstractmethod
    def complete_draft_order(
        self, shop: str, access_token: str, draft_id: str, payment_pending: bool = True
    ) -> CompletedOrderResult:
        pass
