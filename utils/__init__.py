"""Utility modules for the translation relay.

This package provides logging setup, file path helpers, string handling
and the event channel used by streaming sessions.
"""

from utils.event_channel import EventChannel
from utils.file_utils import FileUtils
from utils.logger_utils import LoggerUtils
from utils.string_utils import StringUtils

__all__: list[str] = ["EventChannel", "FileUtils", "LoggerUtils", "StringUtils"]
