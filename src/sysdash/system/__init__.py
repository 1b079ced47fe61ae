"""
System interaction utilities.

Asynchronous command execution used by the metric source to shell out to OS
tools, plus availability checks for those tools.
"""

from .commands import check_nvidia_smi_installed, is_command_available, run_command_async

__all__ = [
    "check_nvidia_smi_installed",
    "is_command_available",
    "run_command_async",
]
