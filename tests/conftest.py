# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Shared fixtures: Maildir trees, configuration and a session with fakes."""

from __future__ import annotations

from pathlib import Path

import pytest

from helpers import FakeClassifier, FakeFilterctl, FakeReputation
from mail_rescan.config import MaildirConfig, RescanConfig, RewriteConfig
from mail_rescan.session import RescanSession


@pytest.fixture
def maildir_root(tmp_path: Path) -> Path:
    """Root holding ``alice/Maildir`` with an empty INBOX ``cur``."""
    (tmp_path / "alice" / "Maildir" / "cur").mkdir(parents=True)
    return tmp_path


@pytest.fixture
def inbox(maildir_root: Path) -> Path:
    return maildir_root / "alice" / "Maildir" / "cur"


@pytest.fixture
def config(maildir_root: Path) -> RescanConfig:
    return RescanConfig(
        maildir=MaildirConfig(root=str(maildir_root)),
        rewrite=RewriteConfig(hostname="mx1.example.com"),
    )


@pytest.fixture
def fakes():
    return {
        "classifier": FakeClassifier(),
        "reputation": FakeReputation(),
        "filterctl": FakeFilterctl(),
    }


@pytest.fixture
def session(config: RescanConfig, fakes) -> RescanSession:
    return RescanSession(config, **fakes)
