"""Process execution, pb command layer and git lookups."""

from pbview.services.git_info import GitInfoService
from pbview.services.pb_client import PBClient, RenamePrefixScope
from pbview.services.process_runner import ProcessOutput, ProcessRunner

__all__ = [
    "GitInfoService",
    "PBClient",
    "ProcessOutput",
    "ProcessRunner",
    "RenamePrefixScope",
]
