from .common import Ambiguity, Gap, Overlap, Unambiguous
from .rules import TimeZoneRules

__all__ = ["TimeZoneRules", "Ambiguity", "Unambiguous", "Gap", "Overlap"]
