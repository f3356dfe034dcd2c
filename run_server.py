import copy
import logging.config
from pathlib import Path

import uvicorn
from uvicorn.config import LOGGING_CONFIG

import config

custom_logging = copy.deepcopy(LOGGING_CONFIG)
log_format = "%(asctime)s | %(levelprefix)s %(name)s | %(message)s"
custom_logging["formatters"]["default"]["fmt"] = log_format
custom_logging["formatters"]["access"]["fmt"] = (
    "%(asctime)s | %(levelprefix)s %(client_addr)s - \"%(request_line)s\" %(status_code)s"
)
custom_logging["formatters"]["default"]["datefmt"] = "%Y-%m-%d %H:%M:%S"
custom_logging["formatters"]["access"]["datefmt"] = "%Y-%m-%d %H:%M:%S"
# Route gateway module loggers through uvicorn's default handler.
custom_logging["loggers"].update(
    {
        package: {"handlers": ["default"], "level": "INFO", "propagate": False}
        for package in ("exchanges", "accounts", "assistants", "services")
    }
)

PROJECT_ROOT = Path(__file__).resolve().parent

if __name__ == "__main__":
    logging.config.dictConfig(custom_logging)
    uvicorn.run(
        "services.webapp.main:app",
        host=config.HOST,
        port=config.PORT,
        reload=True,
        reload_dirs=[str(PROJECT_ROOT)],
        reload_excludes=["tests/*", "*.log"],
        log_config=None,
    )
