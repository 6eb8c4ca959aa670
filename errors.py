"""
ss30
error kinds raised by the signal engine and backtester. the job layer turns these into
{"ok": False, ...} payloads instead of letting them kill a run.
"""


class StatArbError(ValueError):
    """base for every validation failure in the research engine."""

    kind = "stat_arb_error"

    def to_dict(self):
        return {"error_type": type(self).__name__, "kind": self.kind, "error": str(self)}


class ConfigurationError(StatArbError):
    # threshold spec with nothing active, malformed comparator pair, bad signal_type
    kind = "configuration"


class LengthMismatchError(StatArbError):
    kind = "length_mismatch"


class ParameterError(StatArbError):
    # negative cost, weight/returns supplied without its counterpart, non-finite inputs
    kind = "parameter"


class EmptySeriesError(StatArbError):
    kind = "empty_series"
