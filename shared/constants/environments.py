from enum import Enum


class Environment(str, Enum):
    """Application environment types."""

    PRODUCTION = "production"
    STAGING = "staging"
    TESTING = "testing"
    DEVELOPMENT = "development"

    @classmethod
    def is_production(cls, env: str) -> bool:
        """Check if environment is production."""
        return env.lower() == cls.PRODUCTION.value

    @classmethod
    def is_testing(cls, env: str) -> bool:
        """Check if environment is testing."""
        return env.lower() == cls.TESTING.value

    @classmethod
    def is_development(cls, env: str) -> bool:
        """Check if environment is development"""
        return env.lower() == cls.DEVELOPMENT.value

    @classmethod
    def parse(cls, env: str) -> "Environment":
        """Parse a configured environment name, rejecting unknown values."""
        try:
            return cls(env.strip().lower())
        except ValueError:
            allowed = ", ".join(e.value for e in cls)
            raise ValueError(
                f"Unknown environment '{env}'. Expected one of: {allowed}"
            ) from None
