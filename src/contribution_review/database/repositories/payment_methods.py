"""Repository for the payment_methods container (partitioned by /id)."""

from __future__ import annotations

from contribution_review.database.repositories.base import BaseRepository
from contribution_review.models.payment_method import PaymentMethod


class PaymentMethodRepository(BaseRepository[PaymentMethod]):
    container_name = "payment_methods"
    model_class = PaymentMethod

    async def list_codes(self) -> set[str]:
        """Return the codes of all active payment methods."""
        codes = await self._query_values(
            "SELECT VALUE c.code FROM c WHERE (NOT IS_DEFINED(c.active) OR c.active = true)"
            " AND NOT IS_DEFINED(c.deleted_at)",
        )
        return {str(code) for code in codes if code}
