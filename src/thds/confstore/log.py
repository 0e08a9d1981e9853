"""Keyword-context logging for thds.confstore.

Keyword arguments at the end of a log call are rendered into the message as context,
and `logger_context` adds context for everything further down the stack:
```
logger = getLogger("thds.confstore.store")
logger.info("Loaded config", path="app.json")
# 2026-02-18 10:01:16,826 info     thds.confstore.store (path=app.json) Loaded config
with logger_context(source="env"):
    logger.debug("Merged", added=3)
# 2026-02-18 10:01:16,827 debug    thds.confstore.store (source=env),(added=3) Merged
```
The level of every logger handed out here comes from THDS_CONFSTORE_LOG_LEVEL (default INFO).
"""

import contextlib
import contextvars as cv
import logging
import os
import typing as ty
from copy import copy

LOG_LEVEL_ENV = "THDS_CONFSTORE_LOG_LEVEL"
MAX_MODULE_NAME_LEN = 40

_LOGGING_KWARGS = ("exc_info", "stack_info", "stacklevel", "extra")
# passed straight through to the stdlib logger; every other keyword becomes context.

TH_REC_CTXT = "th_context"
# the attribute on each LogRecord holding the context. usable as %(th_context)s in format strings.


class _THContext(ty.Dict[str, ty.Any]):
    def __str__(self):
        return ",".join(map("(%s=%s)".__mod__, self.items())) if self else "()"


_LOG_CONTEXT: cv.ContextVar[_THContext] = cv.ContextVar("thds-confstore-log-context", default=_THContext())


@contextlib.contextmanager
def logger_context(**kwargs) -> ty.Iterator[None]:
    """Put some key-value pairs into the keyword-based logger context."""
    token = _LOG_CONTEXT.set(_THContext(_LOG_CONTEXT.get(), **kwargs))
    try:
        yield
    finally:
        _LOG_CONTEXT.reset(token)


def _embed_th_context_in_extra_kw(kwargs: ty.MutableMapping[str, ty.Any]) -> ty.MutableMapping[str, ty.Any]:
    th_context = _LOG_CONTEXT.get()
    th_kwargs = [k for k in kwargs if k not in _LOGGING_KWARGS]
    if th_kwargs:
        th_context = copy(th_context)
        th_context.update((k, kwargs.pop(k)) for k in th_kwargs)
    extra = kwargs["extra"] = kwargs.get("extra", dict())
    extra[TH_REC_CTXT] = th_context
    return kwargs


class KwLogger(logging.LoggerAdapter):
    """Allows logging of extra keyword arguments straight through without
    needing an "extras" dictionary.
    """

    def process(self, msg, kwargs):
        return msg, _embed_th_context_in_extra_kw(kwargs)


def log_level() -> int:
    level = logging.getLevelName(os.getenv(LOG_LEVEL_ENV, "INFO").strip().upper())
    return level if isinstance(level, int) else logging.INFO


def getLogger(name: ty.Optional[str] = None) -> logging.LoggerAdapter:
    logger = logging.getLogger(name)
    if logger.level == logging.NOTSET:
        logger.setLevel(log_level())
    return KwLogger(logger, dict())


class CompactFormatter(logging.Formatter):
    @staticmethod
    def format_module_name(name: str) -> str:
        if len(name) > MAX_MODULE_NAME_LEN:
            half = MAX_MODULE_NAME_LEN // 2
            name = name[: half - 2] + "..." + name[-half + 1 :]
        return name.ljust(MAX_MODULE_NAME_LEN)

    def format(self, record: logging.LogRecord) -> str:
        record.message = record.getMessage()
        levelname = f"{record.levelname:7}"
        if record.levelno < logging.WARNING:
            levelname = levelname.lower()
        th_ctx = getattr(record, TH_REC_CTXT, None) or "()"
        formatted = (
            f"{self.formatTime(record)} {levelname}  {self.format_module_name(record.name)}"
            f" {th_ctx} {record.message}"
        )
        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            formatted += "\n" + record.exc_text
        if record.stack_info:
            formatted += "\n" + self.formatStack(record.stack_info)
        return formatted


def basic_config(logger_name: str = "") -> None:
    """Sends logs to the console with the compact format, unless the named logger
    (the root, by default) already has somewhere to send them.
    """
    logger = logging.getLogger(logger_name or None)
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(CompactFormatter())
    logger.addHandler(handler)


basic_config()
