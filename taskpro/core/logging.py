import logging

from taskpro.core.config import get_settings


def setup_logging(level: str | None = None) -> None:
    level = (level or get_settings().log_level).upper()

    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    # force: servers like uvicorn install root handlers before we get here
    logging.basicConfig(level=level, handlers=[handler], force=True)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
