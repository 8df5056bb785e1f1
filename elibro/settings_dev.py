from .settings_template import *  # NOQA ignore=F405
from .settings_template import LOGGING

LOGGING["handlers"]["stream"]["level"] = "DEBUG"
LOGGING["handlers"]["structlog_console"]["level"] = "DEBUG"
LOGGING["loggers"]["catalog"]["level"] = "DEBUG"
LOGGING["loggers"]["structlog"]["level"] = "DEBUG"

DEBUG = True
