"""Tests for statcat.utils.ids."""

from __future__ import annotations

import pytest

from statcat.core.errors import FatalSetupError
from statcat.utils.ids import MAX_SNOWFLAKE, require_snowflake


class TestRequireSnowflake:
    """Tests for require_snowflake function."""

    def test_parses_digits(self) -> None:
        assert require_snowflake("123456789") == 123456789

    def test_strips_whitespace(self) -> None:
        assert require_snowflake(" 42 \n") == 42

    def test_accepts_largest_storable_id(self) -> None:
        assert require_snowflake(str(MAX_SNOWFLAKE)) == MAX_SNOWFLAKE

    @pytest.mark.parametrize("value", ["", "abc", "12a", "-5", "1.5"])
    def test_rejects_non_numeric(self, value: str) -> None:
        with pytest.raises(FatalSetupError, match="not a numeric id"):
            require_snowflake(value, "guild id")

    def test_rejects_zero(self) -> None:
        with pytest.raises(FatalSetupError, match="out of range"):
            require_snowflake("0")

    def test_rejects_overflow(self) -> None:
        with pytest.raises(FatalSetupError, match="out of range"):
            require_snowflake(str(MAX_SNOWFLAKE + 1))

    def test_message_names_the_input(self) -> None:
        with pytest.raises(FatalSetupError, match="Malformed guild id"):
            require_snowflake("nope", "guild id")
