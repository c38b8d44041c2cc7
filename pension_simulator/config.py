"""Application configuration management using Pydantic Settings."""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from pension_simulator.models.policy import (
    CalculationPolicy,
    ContributionPolicy,
    SickLeavePolicy,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Application Environment
    app_env: str = Field(default="development", alias="APP_ENV")

    # Flask Configuration
    secret_key: str = Field(..., alias="SECRET_KEY")

    # Storage Configuration
    storage_type: str = Field(default="local", alias="STORAGE_TYPE")
    storage_base_path: str = Field(default="storage", alias="STORAGE_BASE_PATH")
    result_cache_enabled: bool = Field(default=True, alias="RESULT_CACHE_ENABLED")

    # Logging Configuration
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Statutory policy
    min_retirement_age: int = Field(default=60, alias="MIN_RETIREMENT_AGE")
    max_retirement_age: int = Field(default=70, alias="MAX_RETIREMENT_AGE")
    working_days_per_year: int = Field(default=250, gt=0, alias="WORKING_DAYS_PER_YEAR")
    sick_pay_rate: float = Field(default=0.8, ge=0, le=1, alias="SICK_PAY_RATE")
    sick_pay_contributable: bool = Field(default=True, alias="SICK_PAY_CONTRIBUTABLE")
    standard_contribution_rate: float = Field(
        default=0.1952, ge=0, le=1, alias="STANDARD_CONTRIBUTION_RATE"
    )
    declared_monthly_base: float = Field(
        default=4694.40, ge=0, alias="DECLARED_MONTHLY_BASE"
    )
    mandate_base_share: float = Field(
        default=1.0, ge=0, le=1, alias="MANDATE_BASE_SHARE"
    )
    indexation_gap_policy: str = Field(default="strict", alias="INDEXATION_GAP_POLICY")

    # Execution
    max_scenario_workers: int = Field(default=4, ge=1, alias="MAX_SCENARIO_WORKERS")
    calculation_timeout_seconds: Optional[float] = Field(
        default=30.0, gt=0, alias="CALCULATION_TIMEOUT_SECONDS"
    )
    life_expectancy_table_path: Optional[str] = Field(
        default=None, alias="LIFE_EXPECTANCY_TABLE_PATH"
    )

    @field_validator("secret_key")
    @classmethod
    def validate_secret_key(cls, v):
        """Ensure SECRET_KEY is provided and not a placeholder."""
        if not v or v == "your-secret-key-here-change-in-production":
            raise ValueError("SECRET_KEY must be set to a secure value")
        return v

    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, v):
        """Validate application environment."""
        allowed_envs = {"development", "testing", "production"}
        if v not in allowed_envs:
            raise ValueError(f"APP_ENV must be one of {allowed_envs}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        allowed_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed_levels:
            raise ValueError(f"LOG_LEVEL must be one of {allowed_levels}")
        return v.upper()

    @field_validator("storage_type")
    @classmethod
    def validate_storage_type(cls, v):
        """Validate storage type."""
        allowed_types = {"local"}
        if v not in allowed_types:
            raise ValueError(f"STORAGE_TYPE must be one of {allowed_types}")
        return v

    @field_validator("indexation_gap_policy")
    @classmethod
    def validate_indexation_gap_policy(cls, v):
        """Validate indexation gap policy."""
        allowed_policies = {"strict", "extrapolate_last"}
        if v not in allowed_policies:
            raise ValueError(f"INDEXATION_GAP_POLICY must be one of {allowed_policies}")
        return v


def get_settings(env_file: Optional[str] = None) -> Settings:
    """Get application settings instance."""
    if env_file is not None:
        return Settings(_env_file=env_file)
    return Settings()


# Global settings instance - created on first use
_settings: Optional[Settings] = None


def get_global_settings() -> Settings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = get_settings()
    return _settings


def reset_global_settings() -> None:
    """Reset global settings instance (useful for testing)."""
    global _settings
    _settings = None


def build_calculation_policy(settings: Settings) -> CalculationPolicy:
    """Build the engine's calculation policy from application settings.

    Args:
        settings: Loaded application settings

    Returns:
        CalculationPolicy: Policy passed explicitly into every engine run
    """
    contributions = ContributionPolicy(
        standard_rate=settings.standard_contribution_rate,
        declared_monthly_base=settings.declared_monthly_base,
        mandate_base_share=settings.mandate_base_share,
        custom_rate=settings.standard_contribution_rate,
    )
    sick_leave = SickLeavePolicy(
        sick_pay_rate=settings.sick_pay_rate,
        sick_pay_contributable=settings.sick_pay_contributable,
    )
    return CalculationPolicy(
        min_retirement_age=settings.min_retirement_age,
        max_retirement_age=settings.max_retirement_age,
        working_days_per_year=settings.working_days_per_year,
        contributions=contributions,
        sick_leave=sick_leave,
        indexation_gap_policy=settings.indexation_gap_policy,
        max_scenario_workers=settings.max_scenario_workers,
    )
