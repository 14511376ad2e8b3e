"""Unit tests for breakwatch.utils.exit_codes."""

from __future__ import annotations

import pytest

from breakwatch.utils.exit_codes import (
    ERROR_DEGRADED,
    ERROR_GENERAL,
    ERROR_INVALID_ARGS,
    ERROR_INVALID_STATE,
    SUCCESS,
    get_exit_code_name,
)


def test_codes_are_distinct():
    codes = [SUCCESS, ERROR_GENERAL, ERROR_INVALID_ARGS, ERROR_INVALID_STATE, ERROR_DEGRADED]
    assert len(set(codes)) == len(codes)
    assert SUCCESS == 0


@pytest.mark.parametrize(
    "code, name",
    [
        (SUCCESS, "SUCCESS"),
        (ERROR_GENERAL, "ERROR_GENERAL"),
        (ERROR_INVALID_ARGS, "ERROR_INVALID_ARGS"),
        (ERROR_INVALID_STATE, "ERROR_INVALID_STATE"),
        (ERROR_DEGRADED, "ERROR_DEGRADED"),
    ],
)
def test_names(code, name):
    assert get_exit_code_name(code) == name


def test_unknown_code_name():
    assert get_exit_code_name(99) == "UNKNOWN(99)"
