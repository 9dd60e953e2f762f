"""Profile records, vocabularies and loaders."""

from .schema import Profile, CompanySize, FundingStage
from .loaders import load_profiles

__all__ = ["Profile", "CompanySize", "FundingStage", "load_profiles"]
