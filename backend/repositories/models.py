"""
SQLAlchemy ORM models for persistence.
"""
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text

from db import Base


class TemplateORM(Base):
    __tablename__ = "templates"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False, default="")
    description = Column(Text, nullable=True)
    preview_url = Column(String, nullable=True)


class OrderORM(Base):
    __tablename__ = "orders"

    id = Column(String, primary_key=True, index=True)
    template_id = Column(String, ForeignKey("templates.id"), nullable=False, index=True)
    readable_order_id = Column(String, nullable=True)
    custom_message = Column(Text, nullable=True)
    selected_message = Column(Text, nullable=True)
    card_quantity = Column(Integer, nullable=True)
    logo_url = Column(String, nullable=True)
    signature_url = Column(String, nullable=True)
    cropped_signature_url = Column(String, nullable=True)
    # Written back by the renderer: base64 PNG data URIs
    front_preview = Column(Text, nullable=True)
    inside_preview = Column(Text, nullable=True)
    previews_updated_at = Column(DateTime, nullable=True)
