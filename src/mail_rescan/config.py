# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Configuration dataclasses and INI loader for the rescan engine.

Provides a nested configuration structure:
- config.api.server_url
- config.maildir.root
- config.reputation.domain
- config.rewrite.max_header_length

``load_settings()`` reads an INI file with ``MRS_*`` environment variables
as fallbacks::

    [api]
    server_url = https://mailqueue.example.com:2016
    cert = ~/.mail-rescan/client.pem
    key = ~/.mail-rescan/client.key
    ca = /etc/ssl/mailqueue-ca.pem
    timeout = 30

    [maildir]
    root = /home

    [reputation]
    domain = score.senderscore.com

    [rewrite]
    hostname = mx1.example.com
    max_header_length = 75

    [logging]
    level = INFO
    verbose = false
"""

from __future__ import annotations

import configparser
import os
import socket
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_CONFIG_PATH = "~/.config/mail-rescan/config.ini"
DEFAULT_REPUTATION_DOMAIN = "score.senderscore.com"

# Physical line limit of the wrapped X-Spam-Status header, delimiter included.
DEFAULT_MAX_HEADER_LENGTH = 75
MIN_MAX_HEADER_LENGTH = 32


@dataclass
class ApiConfig:
    """Management API endpoint and client credentials."""

    server_url: str = "https://localhost:2016"
    """Base URL for the rspamd and filterctl endpoints."""

    cert: str | None = None
    """Client certificate file (PEM)."""

    key: str | None = None
    """Client private key file (PEM)."""

    ca: str | None = None
    """Certificate authority used to verify the server. None uses system roots."""

    timeout: float = 30.0
    """Per-request timeout in seconds."""


@dataclass
class MaildirConfig:
    """Mailbox store layout."""

    root: str = "/home"
    """Directory holding one home directory per account."""


@dataclass
class ReputationConfig:
    """Sender score DNS settings."""

    domain: str = DEFAULT_REPUTATION_DOMAIN
    """Zone appended to the reversed sender address."""

    timeout: float = 5.0
    """DNS resolver lifetime in seconds."""


@dataclass
class RewriteConfig:
    """Header rewrite settings."""

    hostname: str = field(default_factory=socket.getfqdn)
    """Local hostname reported to the classification service."""

    max_header_length: int = DEFAULT_MAX_HEADER_LENGTH
    """Maximum physical line length of the synthesized status header."""


@dataclass
class RescanConfig:
    """Main configuration container.

    Example:
        config = RescanConfig(
            api=ApiConfig(server_url="https://mailqueue:2016"),
            maildir=MaildirConfig(root="/var/mail"),
        )
        session = RescanSession(config)
    """

    api: ApiConfig = field(default_factory=ApiConfig)
    maildir: MaildirConfig = field(default_factory=MaildirConfig)
    reputation: ReputationConfig = field(default_factory=ReputationConfig)
    rewrite: RewriteConfig = field(default_factory=RewriteConfig)

    log_level: str = "INFO"
    """Logging level name used by the CLI."""

    verbose: bool = False
    """Log every pipeline step at DEBUG level."""


def expand_path(value: str | None, name: str) -> str | None:
    """Expand a leading ``~`` in a configured file path.

    Raises:
        ValueError: If the configured path is shorter than two characters.
    """
    if value is None:
        return None
    if len(value) < 2:
        raise ValueError(f"path {name} too short: {value!r}")
    if value.startswith("~"):
        return str(Path.home() / value[1:].lstrip("/"))
    return value


def load_settings(path: str | os.PathLike[str] | None = None) -> RescanConfig:
    """Load configuration from an INI file with environment fallbacks.

    Environment variables (all prefixed with MRS_):
      MRS_CONFIG - Path to config file (default: ~/.config/mail-rescan/config.ini)
      MRS_SERVER_URL, MRS_CERT, MRS_KEY, MRS_CA, MRS_TIMEOUT
      MRS_MAILDIR_ROOT
      MRS_REPUTATION_DOMAIN, MRS_REPUTATION_TIMEOUT
      MRS_HOSTNAME, MRS_MAX_HEADER_LENGTH
      MRS_LOG_LEVEL, MRS_VERBOSE

    Values in the file take precedence over the environment. A missing file
    yields defaults plus whatever the environment provides.

    Args:
        path: Explicit config file path; overrides MRS_CONFIG.

    Returns:
        A populated RescanConfig.

    Raises:
        ValueError: On a malformed number, a too short path or a
            max_header_length below MIN_MAX_HEADER_LENGTH.
    """
    config_path = Path(os.path.expanduser(str(path or os.getenv("MRS_CONFIG", DEFAULT_CONFIG_PATH))))
    parser = configparser.ConfigParser()
    parser.read(config_path)

    def get(section: str, option: str, fallback: str | None = None) -> str | None:
        if parser.has_option(section, option):
            return parser.get(section, option)
        return fallback

    def get_int(section: str, option: str, fallback: str | None = None, default: int | None = None) -> int | None:
        value = get(section, option, fallback)
        if value is None:
            return default
        return int(value)

    def get_float(section: str, option: str, fallback: str | None = None, default: float | None = None) -> float | None:
        value = get(section, option, fallback)
        if value is None:
            return default
        return float(value)

    def get_bool(section: str, option: str, fallback: str | None = None, default: bool | None = None) -> bool | None:
        value = get(section, option, fallback)
        if value is None:
            return default
        normalized = str(value).strip().lower()
        if normalized in {"1", "true", "yes", "on"}:
            return True
        if normalized in {"0", "false", "no", "off"}:
            return False
        return default

    defaults = RescanConfig()

    api = ApiConfig(
        server_url=get("api", "server_url", os.getenv("MRS_SERVER_URL", defaults.api.server_url)).rstrip("/"),
        cert=expand_path(get("api", "cert", os.getenv("MRS_CERT")), "cert"),
        key=expand_path(get("api", "key", os.getenv("MRS_KEY")), "key"),
        ca=expand_path(get("api", "ca", os.getenv("MRS_CA")), "ca"),
        timeout=get_float("api", "timeout", os.getenv("MRS_TIMEOUT"), default=defaults.api.timeout),
    )
    maildir = MaildirConfig(
        root=os.path.expanduser(get("maildir", "root", os.getenv("MRS_MAILDIR_ROOT", defaults.maildir.root))),
    )
    reputation = ReputationConfig(
        domain=get("reputation", "domain", os.getenv("MRS_REPUTATION_DOMAIN", defaults.reputation.domain)),
        timeout=get_float(
            "reputation",
            "timeout",
            os.getenv("MRS_REPUTATION_TIMEOUT"),
            default=defaults.reputation.timeout,
        ),
    )
    hostname = get("rewrite", "hostname", os.getenv("MRS_HOSTNAME"))
    rewrite = RewriteConfig(
        hostname=hostname.strip() if hostname and hostname.strip() else defaults.rewrite.hostname,
        max_header_length=get_int(
            "rewrite",
            "max_header_length",
            os.getenv("MRS_MAX_HEADER_LENGTH"),
            default=DEFAULT_MAX_HEADER_LENGTH,
        ),
    )
    if rewrite.max_header_length < MIN_MAX_HEADER_LENGTH:
        raise ValueError(
            f"max_header_length too small: {rewrite.max_header_length} (minimum {MIN_MAX_HEADER_LENGTH})"
        )

    return RescanConfig(
        api=api,
        maildir=maildir,
        reputation=reputation,
        rewrite=rewrite,
        log_level=get("logging", "level", os.getenv("MRS_LOG_LEVEL", "INFO")),
        verbose=bool(get_bool("logging", "verbose", os.getenv("MRS_VERBOSE"), default=False)),
    )


__all__ = [
    "ApiConfig",
    "MaildirConfig",
    "RescanConfig",
    "ReputationConfig",
    "RewriteConfig",
    "expand_path",
    "load_settings",
]
