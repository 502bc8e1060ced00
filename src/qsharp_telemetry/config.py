# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""
Telemetry configuration settings.

Configuration sources (priority order):
1. Explicit keyword arguments (highest priority)
2. Environment variable
3. `.env` file in the working directory

Environment Variables:
    QSHARP_TELEMETRY_ENABLED: Enable/disable telemetry (default: true)
    QSHARP_AI_KEY_OVERRIDE: Instrumentation key for the reporting backend
    QSHARP_POSTHOG_HOST: PostHog host (default: https://us.i.posthog.com)
    QSHARP_VALIDATE_PAYLOADS: Check payload shapes at runtime (default: false)
"""

from __future__ import annotations

from functools import cache
from typing import Annotated

from pydantic import Field, HttpUrl, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class TelemetrySettings(BaseSettings):
    """Telemetry configuration settings.

    The settings object doubles as a key source for
    `TelemetryDispatcher.initialize`: it exposes the instrumentation key as
    `ai_key`, which is `None` whenever telemetry is opted out or unconfigured.
    """

    model_config = SettingsConfigDict(
        env_prefix="QSHARP_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    telemetry_enabled: Annotated[
        bool,
        Field(
            default=True,
            description="Enable or disable telemetry collection. Set to False to opt out.",
        ),
    ]

    ai_key_override: Annotated[
        SecretStr | None,
        Field(
            default=None,
            description="Instrumentation key for the reporting backend. Telemetry stays disabled without one.",
        ),
    ]

    posthog_host: Annotated[
        HttpUrl,
        Field(
            default=HttpUrl("https://us.i.posthog.com"),
            description="PostHog host URL for telemetry events.",
        ),
    ]

    validate_payloads: Annotated[
        bool,
        Field(
            default=False,
            description="Validate event payloads against the event catalogue at runtime and drop mismatches.",
        ),
    ]

    @property
    def ai_key(self) -> str | None:
        """The instrumentation key, or None when telemetry should stay off."""
        if not self.telemetry_enabled or self.ai_key_override is None:
            return None
        return self.ai_key_override.get_secret_value() or None

    @property
    def is_configured(self) -> bool:
        """Check if telemetry is properly configured."""
        return self.ai_key is not None


@cache
def get_telemetry_settings() -> TelemetrySettings:
    """Get cached telemetry settings instance."""
    return TelemetrySettings()


def reset_telemetry_settings() -> None:
    """Reload settings from configuration sources on next access."""
    get_telemetry_settings.cache_clear()


__all__ = (
    "TelemetrySettings",
    "get_telemetry_settings",
    "reset_telemetry_settings",
)
