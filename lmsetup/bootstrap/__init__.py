# lmsetup/bootstrap/__init__.py
from __future__ import annotations

import logging
import os

_LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=_LOG_LEVEL,
    format="%(asctime)s | %(levelname)8s | %(name)s | %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)
logger.debug("Logger inicializado con nivel %s", _LOG_LEVEL)

from .detector import Detector, parse_version
from .env_writer import EnvWriter
from .errors import (
    BootstrapError,
    ExternalCommandFailed,
    PlatformUnsupported,
    ProfileWriteFailed,
    ToolStillAbsent,
)
from .installer import Installer, PackageInstaller, SourceBuildInstaller
from .models import (
    CommandResult,
    Detection,
    EnvBlock,
    Export,
    Failed,
    InstallResult,
    Installed,
    Skipped,
    ToolRequirement,
    Unparsable,
    Version,
    VersionInfo,
)
from .pipeline import Bootstrapper
from .runner import CommandRunner

__all__ = [
    "Bootstrapper",
    "BootstrapError",
    "CommandResult",
    "CommandRunner",
    "Detection",
    "Detector",
    "EnvBlock",
    "EnvWriter",
    "Export",
    "ExternalCommandFailed",
    "Failed",
    "InstallResult",
    "Installed",
    "Installer",
    "PackageInstaller",
    "PlatformUnsupported",
    "ProfileWriteFailed",
    "Skipped",
    "SourceBuildInstaller",
    "ToolRequirement",
    "ToolStillAbsent",
    "Unparsable",
    "Version",
    "VersionInfo",
    "parse_version",
]
