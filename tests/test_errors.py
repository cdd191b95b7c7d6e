# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
import pytest

from mail_rescan.errors import (
    ClassificationError,
    CollaboratorError,
    ContextExtractionError,
    InputResolutionError,
    OutputError,
    RescanError,
    ReputationError,
)


@pytest.mark.parametrize(
    "cls, step",
    [
        (InputResolutionError, "input"),
        (ClassificationError, "classify"),
        (ContextExtractionError, "context"),
        (ReputationError, "reputation"),
        (CollaboratorError, "collaborator"),
        (OutputError, "output"),
    ],
)
def test_step_names(cls, step):
    exc = cls("failed")
    assert isinstance(exc, RescanError)
    assert exc.step == step
    assert str(exc) == f"{step}: failed"


def test_path_in_message():
    exc = OutputError("dir not cur", path="/home/a/Maildir/new/1.eml")
    assert str(exc) == "output: dir not cur [/home/a/Maildir/new/1.eml]"
    assert exc.message == "dir not cur"


def test_step_override():
    assert RescanError("x", step="custom").step == "custom"
    assert RescanError("x").step == "rescan"
