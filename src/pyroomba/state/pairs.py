"""Paired settings.

Two robot settings are each spread over two flags that arrive
independently, where one flag overrides the other:

* power boost: ``carpetBoost: true`` means "auto" whatever ``vacHigh``
  says; otherwise ``vacHigh`` picks performance or eco.
* cleaning passes: ``noAutoPasses: false`` means "auto" whatever
  ``twoPass`` says; otherwise ``twoPass`` picks two passes or one.

A :class:`PairedSetting` remembers the last known value of both sides
and derives the single value shown on the channel.  Both sides start
unknown; an unknown override side is treated as "override active", so
a detail flag is never shown until the override is known to be off.
"""

from __future__ import annotations

from dataclasses import dataclass

from pyroomba.models.channels import BoostMode, PassesMode


@dataclass(slots=True)
class PairedSetting:
    auto_label: str
    on_label: str
    off_label: str
    auto: bool | None = None
    detail: bool | None = None

    def display(self) -> str | None:
        """Current derived value, or ``None`` if it cannot be known yet."""
        if self.auto is None:
            return None
        if self.auto:
            return self.auto_label
        if self.detail is None:
            return None
        return self.on_label if self.detail else self.off_label

    def update_auto(self, auto: bool) -> str | None:
        """Record the override side; returns the value to emit, if any."""
        self.auto = auto
        return self.display()

    def update_detail(self, detail: bool) -> str | None:
        """Record the detail side; emits only while the override is known off."""
        self.detail = detail
        if self.auto is False:
            return self.display()
        return None


def boost_setting() -> PairedSetting:
    return PairedSetting(
        auto_label=BoostMode.AUTO,
        on_label=BoostMode.PERFORMANCE,
        off_label=BoostMode.ECO,
    )


def passes_setting() -> PairedSetting:
    return PairedSetting(
        auto_label=PassesMode.AUTO,
        on_label=PassesMode.TWO,
        off_label=PassesMode.ONE,
    )
