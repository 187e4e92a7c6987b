"""
Order repository backed by SQLAlchemy.

The renderer only reads orders and writes back the two preview images and
their timestamp.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from domain.models import Order
from repositories.models import OrderORM
from services.errors import PersistFailed


def _order_from_orm(orm: OrderORM) -> Order:
    return Order(
        id=orm.id,
        template_id=orm.template_id,
        readable_order_id=orm.readable_order_id,
        custom_message=orm.custom_message,
        selected_message=orm.selected_message,
        card_quantity=orm.card_quantity,
        logo_url=orm.logo_url,
        signature_url=orm.signature_url,
        cropped_signature_url=orm.cropped_signature_url,
        front_preview=orm.front_preview,
        inside_preview=orm.inside_preview,
        previews_updated_at=orm.previews_updated_at,
    )


class OrdersRepository:
    """Read access to orders plus the preview write-back."""

    def get_order(self, session: Session, order_id: str) -> Optional[Order]:
        orm = session.get(OrderORM, order_id)
        if not orm:
            return None
        return _order_from_orm(orm)

    def create_order(self, session: Session, order: Order) -> Order:
        orm = OrderORM(
            id=order.id,
            template_id=order.template_id,
            readable_order_id=order.readable_order_id,
            custom_message=order.custom_message,
            selected_message=order.selected_message,
            card_quantity=order.card_quantity,
            logo_url=order.logo_url,
            signature_url=order.signature_url,
            cropped_signature_url=order.cropped_signature_url,
        )
        session.add(orm)
        session.commit()
        session.refresh(orm)
        return _order_from_orm(orm)

    def save_previews(
        self,
        session: Session,
        order_id: str,
        front_preview: str,
        inside_preview: str,
        updated_at: datetime,
    ) -> Order:
        """Write both faces and the timestamp in a single commit."""
        if not front_preview or not inside_preview:
            raise PersistFailed("Both faces are required")
        try:
            orm = session.get(OrderORM, order_id)
            if not orm:
                raise PersistFailed(f"Order {order_id} disappeared before previews could be saved")
            orm.front_preview = front_preview
            orm.inside_preview = inside_preview
            orm.previews_updated_at = updated_at
            session.add(orm)
            session.commit()
            session.refresh(orm)
        except SQLAlchemyError as exc:
            session.rollback()
            raise PersistFailed(f"Saving previews for order {order_id} failed: {exc}") from exc
        return _order_from_orm(orm)
