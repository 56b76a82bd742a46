"""Errors raised while loading and looking up tax rules."""


class RuleTableError(ValueError):
    """A rule file is missing, malformed or internally inconsistent."""


class UnknownRuleYearError(LookupError):
    """No rules are loaded for the requested income year."""
