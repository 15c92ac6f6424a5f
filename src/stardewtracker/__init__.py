"""Core package for the Stardew save companion."""

from .assembler import (
    AchievementProgress,
    alternate_bundle_options,
    attach_randomizer_data,
    bundles_by_room,
    get_active_bundles,
    local_legend_progress,
    set_status_patch,
    swap_bundle,
)
from .bundles import (
    Bundle,
    BundleItem,
    BundleWithStatus,
    Randomizer,
    bundle_completed,
)
from .catalog import (
    COMMUNITY_CENTER_ROOMS,
    ItemMetadata,
    item_details,
    load_community_center,
    load_item_metadata,
)
from .patching import IndexedArrayPatch, merge_deep, normalize_patch
from .persistence import FileSaveStore, InMemorySaveStore, SaveStore
from .players import PLAYER_SECTIONS, PlayerRecord
from .randomizers import resolve_bundle_randomizer, resolve_item_randomizers
from .session import (
    GatewayError,
    HttpSaveGateway,
    PlayerSession,
    RollbackPolicy,
    SaveGateway,
)

__all__ = [
    "Bundle",
    "BundleItem",
    "BundleWithStatus",
    "Randomizer",
    "bundle_completed",
    "resolve_item_randomizers",
    "resolve_bundle_randomizer",
    "COMMUNITY_CENTER_ROOMS",
    "ItemMetadata",
    "item_details",
    "load_community_center",
    "load_item_metadata",
    "AchievementProgress",
    "get_active_bundles",
    "attach_randomizer_data",
    "swap_bundle",
    "alternate_bundle_options",
    "set_status_patch",
    "bundles_by_room",
    "local_legend_progress",
    "IndexedArrayPatch",
    "normalize_patch",
    "merge_deep",
    "PLAYER_SECTIONS",
    "PlayerRecord",
    "SaveStore",
    "InMemorySaveStore",
    "FileSaveStore",
    "GatewayError",
    "HttpSaveGateway",
    "PlayerSession",
    "RollbackPolicy",
    "SaveGateway",
]
