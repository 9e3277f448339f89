"""
Tests for the severity catalog and the severity level pool.
"""

import pytest

from blunder import severity as catalog
from blunder.exceptions import ConfigurationError
from blunder.pool import SeverityLevelPool
from blunder.severity import FATAL_MASK, Severity

FATAL_CODES = [
    Severity.ERROR,
    Severity.PARSE,
    Severity.CORE_ERROR,
    Severity.CORE_WARNING,
    Severity.COMPILE_ERROR,
    Severity.COMPILE_WARNING,
]

NON_FATAL_CODES = [
    Severity.WARNING,
    Severity.NOTICE,
    Severity.USER_ERROR,
    Severity.USER_WARNING,
    Severity.USER_NOTICE,
    Severity.RECOVERABLE_ERROR,
    Severity.DEPRECATED,
    Severity.USER_DEPRECATED,
]


class TestSeverityCodes:

    def test_codes_are_powers_of_two_except_all(self):
        for code in Severity:
            if code is Severity.ALL:
                continue
            assert code & (code - 1) == 0

    def test_all_is_not_a_power_of_two(self):
        assert Severity.ALL & (Severity.ALL - 1) != 0


class TestCatalog:

    def test_name_of_known_code(self):
        assert catalog.name_of(Severity.WARNING) == "E_WARNING"
        assert catalog.name_of(Severity.USER_DEPRECATED) == "E_USER_DEPRECATED"

    def test_name_of_unknown_code_uses_fallback(self):
        assert catalog.name_of(3) is None
        assert catalog.name_of(3, "Error") == "Error"

    def test_title_of(self):
        assert catalog.title_of(Severity.WARNING) == "Warning"
        assert catalog.title_of(0) == "Error"
        assert catalog.title_of(0, "Unknown") == "Unknown"

    def test_entry_for_unknown_is_fallback(self):
        entry = catalog.entry_for(999999)
        assert entry is catalog.FALLBACK
        assert entry.is_fallback
        assert entry.name is None

    def test_all_codes_includes_catch_all(self):
        codes = catalog.all_codes()
        assert Severity.ALL in codes
        assert 0 not in codes
        assert len(codes) == len(Severity)

    @pytest.mark.parametrize("code", FATAL_CODES)
    def test_fatal_codes(self, code):
        assert catalog.is_fatal(code) is True

    @pytest.mark.parametrize("code", NON_FATAL_CODES)
    def test_non_fatal_codes(self, code):
        assert catalog.is_fatal(code) is False

    def test_is_fatal_independent_of_call_order(self):
        first = [catalog.is_fatal(code) for code in catalog.all_codes()]
        second = [catalog.is_fatal(code) for code in reversed(catalog.all_codes())]
        assert first == list(reversed(second))

    def test_fatal_mask_matches_fatal_set(self):
        mask = 0
        for code in FATAL_CODES:
            mask |= code
        assert FATAL_MASK == mask


class TestParseSeverity:

    @pytest.mark.parametrize("value", [2, Severity.WARNING, "E_WARNING", "warning", "WARNING", " 2 "])
    def test_accepted_forms(self, value):
        assert catalog.parse_severity(value) == Severity.WARNING

    @pytest.mark.parametrize("value", ["nope", 3, True, None, 2.0])
    def test_rejected_values(self, value):
        with pytest.raises(ConfigurationError):
            catalog.parse_severity(value)


class TestWarningCategories:

    @pytest.mark.parametrize("category, expected", [
        (DeprecationWarning, Severity.DEPRECATED),
        (PendingDeprecationWarning, Severity.DEPRECATED),
        (FutureWarning, Severity.USER_DEPRECATED),
        (UserWarning, Severity.USER_WARNING),
        (RuntimeWarning, Severity.WARNING),
        (SyntaxWarning, Severity.WARNING),
        (ResourceWarning, Severity.NOTICE),
        (ImportWarning, Severity.NOTICE),
        (Warning, Severity.WARNING),
    ])
    def test_mapping(self, category, expected):
        assert catalog.severity_for_warning(category) == expected

    def test_subclass_inherits_mapping(self):
        class CustomDeprecation(DeprecationWarning):
            pass

        assert catalog.severity_for_warning(CustomDeprecation) == Severity.DEPRECATED


class TestSeverityLevelPool:

    def test_default_pool_allows_everything(self, pool):
        assert pool.mask() == Severity.ALL
        assert pool.has(Severity.ALL)
        assert pool.list_removed() == []

    def test_exclude_removes_codes_and_catch_all(self, pool):
        pool.exclude([Severity.WARNING, Severity.NOTICE])

        mask = pool.mask()
        assert not mask & Severity.WARNING
        assert not mask & Severity.NOTICE
        assert not pool.has(Severity.ALL)
        assert Severity.ALL not in pool.list_supported()
        assert mask & Severity.ERROR

    def test_exclude_keeps_allowed_and_removed_disjoint(self, pool):
        pool.exclude([Severity.WARNING, Severity.DEPRECATED])
        assert set(pool.list_supported()).isdisjoint(pool.list_removed())
        assert pool.list_removed() == [Severity.WARNING, Severity.DEPRECATED]

    def test_exclude_unknown_code_raises(self, pool):
        with pytest.raises(ConfigurationError):
            pool.exclude([Severity.WARNING, 3])

    def test_exclude_validates_before_mutating(self, pool):
        with pytest.raises(ConfigurationError):
            pool.exclude([Severity.WARNING, 3])
        assert pool.mask() == Severity.ALL
        assert pool.list_removed() == []

    def test_exclude_on_explicit_pool_without_catch_all(self):
        pool = SeverityLevelPool([Severity.ERROR, Severity.WARNING])
        pool.exclude([Severity.WARNING])
        assert pool.mask() == Severity.ERROR

    def test_explicit_levels_are_validated(self):
        with pytest.raises(ConfigurationError):
            SeverityLevelPool([Severity.ERROR, 5])

    def test_redirect_readmits_removed_codes(self, pool):
        def callback(code, message, file, line, context):
            return True

        pool.exclude([Severity.WARNING, Severity.USER_WARNING]).redirect_to(callback)

        assert pool.redirect_call is callback
        for code in (Severity.WARNING, Severity.USER_WARNING):
            assert pool.is_redirected(code)
            assert pool.mask() & code
        assert not pool.is_redirected(Severity.NOTICE)

    def test_redirect_does_not_restore_catch_all(self, pool):
        pool.exclude([Severity.WARNING]).redirect_to(lambda *args: None)
        assert pool.mask() != Severity.ALL

    def test_delete(self, pool):
        assert pool.delete(Severity.NOTICE) is True
        assert pool.delete(Severity.NOTICE) is False
        assert pool.is_redirected(Severity.NOTICE)

    def test_list_all_is_keyed_by_name(self):
        levels = SeverityLevelPool.list_all()
        assert levels["E_WARNING"] == Severity.WARNING
        assert levels["E_ALL"] == Severity.ALL

    def test_get_severity_level(self):
        assert SeverityLevelPool.get_severity_level(Severity.PARSE) == "E_PARSE"
        assert SeverityLevelPool.get_severity_level(3, "Error") == "Error"
