from sqlalchemy.orm import sessionmaker

from openidp.adapters import database
from openidp.adapters.default_templates import DefaultTemplateCatalog
from openidp.config import get_db_uri, get_templates_path
from openidp.service_layer import unit_of_work
from openidp.service_layer.theme_service import ThemeService


def bootstrap(
    start_orm: bool = True,
    uow: unit_of_work.AbstractUnitOfWork | None = None,
    session_factory: sessionmaker | None = None,
) -> unit_of_work.AbstractUnitOfWork:
    if start_orm:
        database.start_mappers()

    if uow is None:
        if session_factory is None:
            session_factory = database.create_session_factory(get_db_uri())
        uow = unit_of_work.SqlAlchemyUnitOfWork(session_factory)

    return uow


def bootstrap_theme_service(
    uow: unit_of_work.AbstractUnitOfWork,
    default_templates: DefaultTemplateCatalog | None = None,
) -> ThemeService:
    if default_templates is None:
        default_templates = DefaultTemplateCatalog(get_templates_path())
    return ThemeService(uow=uow, default_templates=default_templates)
