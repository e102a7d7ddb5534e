import logging
from typing import Callable

from fastapi import Depends, HTTPException, Request

from api.backend import BackendAPI
from notion_importer.config import SETTINGS_HEADER, Settings, get_merged_config, require_settings
from notion_importer.errors import ImporterError, MissingConfiguration

logger = logging.getLogger(__name__)

BackendFactory = Callable[[Settings], BackendAPI]


def get_settings(request: Request) -> Settings:
    return get_merged_config(request.headers.get(SETTINGS_HEADER))


def get_backend_factory() -> BackendFactory:
    return BackendAPI


def get_backend(
    settings: Settings = Depends(get_settings),
    factory: BackendFactory = Depends(get_backend_factory),
) -> BackendAPI:
    try:
        require_settings(settings)
    except MissingConfiguration as e:
        raise HTTPException(status_code=500, detail=e.message)
    return factory(settings)


def to_http_error(error: ImporterError, what: str) -> HTTPException:
    """Readable detail for the client; the stack trace stays in the log."""
    logger.exception(f"{what} failed: {error.message}")
    return HTTPException(status_code=500, detail=error.message)
