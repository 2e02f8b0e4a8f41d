"""CLI module for release-metadata.

This module provides the command-line interface for the release-notes
maintenance tools. It supports both CLI arguments and environment variables
for configuration.
"""

from .main import (
    Config,
    build_config,
    cli,
    evaluate_boolean,
    initialize_sentry,
    main,
)

__all__ = [
    "cli",
    "main",
    "Config",
    "build_config",
    "evaluate_boolean",
    "initialize_sentry",
]
