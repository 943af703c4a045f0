from stackoverflow_plugin.launcher.plugin import StackOverflowPlugin
from stackoverflow_plugin.launcher.protocol import (
    LauncherRequest,
    PluginResponse,
    ResponseSink,
    SearchEntry,
    StdoutSink,
)

__all__ = [
    "LauncherRequest",
    "PluginResponse",
    "ResponseSink",
    "SearchEntry",
    "StackOverflowPlugin",
    "StdoutSink",
]
