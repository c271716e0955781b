"""
Log yapılandırması.
Uvicorn ve uygulama logger seviyeleri; modüller pushgate.* alt logger'larını kullanır
(pushgate.push, pushgate.sse, pushgate.approval, ...).
"""
import logging
import sys

# Her istekte INFO satırı basan kütüphaneler
_NOISY_LOGGERS = ("httpx", "httpcore", "urllib3")


def setup_logging(
    level: int | str = logging.INFO,
    format_string: str | None = None,
) -> None:
    if format_string is None:
        format_string = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(
        level=level,
        format=format_string,
        stream=sys.stdout,
        force=True,
    )
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
    logging.getLogger("pushgate").setLevel(level)
