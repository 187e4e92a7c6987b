"""
Template repository backed by SQLAlchemy.
"""
from typing import Optional
from sqlalchemy.orm import Session

from domain.models import Template
from repositories.models import TemplateORM


def _template_from_orm(orm: TemplateORM) -> Template:
    return Template(
        id=orm.id,
        name=orm.name or "",
        description=orm.description,
        preview_url=orm.preview_url,
    )


class TemplatesRepository:
    """Read access to card templates."""

    def get_template(self, session: Session, template_id: str) -> Optional[Template]:
        orm = session.get(TemplateORM, template_id)
        if not orm:
            return None
        return _template_from_orm(orm)

    def create_template(self, session: Session, template: Template) -> Template:
        orm = TemplateORM(
            id=template.id,
            name=template.name,
            description=template.description,
            preview_url=template.preview_url,
        )
        session.add(orm)
        session.commit()
        session.refresh(orm)
        return _template_from_orm(orm)
