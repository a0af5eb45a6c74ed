"""
LifecyclePolicy -- runtime knobs the kernel consumes.

The kernel never reads configuration files.  ``intake_config`` parses YAML
and hands the kernel a frozen ``LifecyclePolicy``; tests construct one
directly or use ``DEFAULT_POLICY``.
"""

from __future__ import annotations

from dataclasses import dataclass

from intake_kernel.domain.statuses import PlatformType, UserRole


@dataclass(frozen=True)
class PlatformEntry:
    """One platform an agent registers on, in display order."""

    platform_type: PlatformType
    display_name: str


DEFAULT_PLATFORMS: tuple[PlatformEntry, ...] = (
    PlatformEntry(PlatformType.DRAFTKINGS, "DraftKings"),
    PlatformEntry(PlatformType.FANDUEL, "FanDuel"),
    PlatformEntry(PlatformType.BETMGM, "BetMGM"),
    PlatformEntry(PlatformType.CAESARS, "Caesars"),
    PlatformEntry(PlatformType.FANATICS, "Fanatics"),
    PlatformEntry(PlatformType.BALLYBET, "Bally Bet"),
    PlatformEntry(PlatformType.BETRIVERS, "BetRivers"),
    PlatformEntry(PlatformType.BET365, "Bet365"),
    PlatformEntry(PlatformType.BANK, "Bank"),
    PlatformEntry(PlatformType.PAYPAL, "PayPal"),
    PlatformEntry(PlatformType.EDGEBOOST, "EdgeBoost"),
)


@dataclass(frozen=True)
class LifecyclePolicy:
    """
    Timing windows, platform list and link templates for the lifecycle.

    Guarantees:
        - Frozen; safe to share between requests.
        - ``platforms`` order defines upload task step numbers (1-based).
    """

    execution_window_business_days: int = 3
    retry_cooldown_hours: int = 24
    gated_platform: PlatformType = PlatformType.BETMGM
    platforms: tuple[PlatformEntry, ...] = DEFAULT_PLATFORMS
    provide_info_due_days: int = 2
    phone_signout_due_days: int = 1
    phone_return_due_days: int = 2
    review_roles: frozenset[UserRole] = frozenset({UserRole.BACKOFFICE, UserRole.ADMIN})
    client_link_template: str = "/agent/clients/{client_id}"
    review_link_template: str = "/backoffice/client-management?client={client_id}"

    def display_name(self, platform_type: PlatformType) -> str:
        for entry in self.platforms:
            if entry.platform_type == platform_type:
                return entry.display_name
        return platform_type.value

    @property
    def gated_platform_name(self) -> str:
        return self.display_name(self.gated_platform)

    def client_link(self, client_id) -> str:
        return self.client_link_template.format(client_id=client_id)

    def review_link(self, client_id) -> str:
        return self.review_link_template.format(client_id=client_id)


DEFAULT_POLICY = LifecyclePolicy()
