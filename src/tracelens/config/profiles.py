"""Built-in threshold profiles for common pipeline types."""

from __future__ import annotations

from dataclasses import dataclass

from tracelens.config.schema import Thresholds


@dataclass(frozen=True, slots=True)
class ProfileSpec:
    """Named threshold defaults."""

    name: str
    description: str
    min_bitrate: int
    min_framerate: float
    max_latency_ns: int | None


_PROFILES: dict[str, ProfileSpec] = {
    "audio": ProfileSpec(
        name="audio",
        description="Compressed or raw audio; no frame-rate floor, tight latency.",
        min_bitrate=32_000,
        min_framerate=0.0,
        max_latency_ns=20_000_000,
    ),
    "video-sd": ProfileSpec(
        name="video-sd",
        description="Standard definition video at 25/30 fps.",
        min_bitrate=500_000,
        min_framerate=24.0,
        max_latency_ns=40_000_000,
    ),
    "video-hd": ProfileSpec(
        name="video-hd",
        description="HD video at 30 fps or more.",
        min_bitrate=2_000_000,
        min_framerate=29.0,
        max_latency_ns=33_000_000,
    ),
}


def available_profiles() -> dict[str, ProfileSpec]:
    """Return built-in profiles by name."""

    return dict(_PROFILES)


def resolve_profile(name: str) -> ProfileSpec:
    """Resolve one profile by name."""

    key = name.strip().lower()
    profile = _PROFILES.get(key)
    if profile is None:
        known = ", ".join(sorted(_PROFILES))
        raise ValueError(f"Unknown profile '{name}'. Available profiles: {known}")
    return profile


def apply_profile(thresholds: Thresholds, profile_name: str) -> ProfileSpec:
    """Apply a profile directly onto a Thresholds instance."""

    profile = resolve_profile(profile_name)
    thresholds.min_bitrate = profile.min_bitrate
    thresholds.min_framerate = profile.min_framerate
    thresholds.max_latency_ns = profile.max_latency_ns
    return profile
