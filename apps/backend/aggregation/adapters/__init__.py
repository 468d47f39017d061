"""Source adapters and environment-driven registration."""

import logging
import os
from typing import List

from aggregation.adapters.base import SourceAdapter
from aggregation.adapters.cults3d import Cults3DAdapter
from aggregation.adapters.makerworld import MakerWorldAdapter
from aggregation.adapters.mock import MockSourceAdapter
from aggregation.adapters.myminifactory import MyMiniFactoryAdapter
from aggregation.adapters.printables import PrintablesAdapter
from aggregation.adapters.thingiverse import ThingiverseAdapter

logger = logging.getLogger(__name__)


def _enabled(name: str, default: str = "true") -> bool:
    return (os.getenv(name, default) or "").strip().lower() in ("1", "true", "yes", "on")


def build_default_adapters() -> List[SourceAdapter]:
    """Adapters for every configured source, in merge order."""
    adapters: List[SourceAdapter] = []

    thingiverse_token = os.getenv("THINGIVERSE_TOKEN")
    if thingiverse_token:
        adapters.append(ThingiverseAdapter(thingiverse_token))

    cults_user = os.getenv("CULTS3D_USERNAME")
    cults_key = os.getenv("CULTS3D_API_KEY")
    if cults_user and cults_key:
        adapters.append(Cults3DAdapter(cults_user, cults_key))

    mmf_key = os.getenv("MYMINIFACTORY_API_KEY")
    if mmf_key:
        adapters.append(MyMiniFactoryAdapter(mmf_key))

    # Credential-free sources are on unless switched off
    if _enabled("PRINTABLES_ENABLED"):
        adapters.append(PrintablesAdapter())
    if _enabled("MAKERWORLD_ENABLED"):
        adapters.append(MakerWorldAdapter())

    use_mock_setting = (os.getenv("USE_MOCK_SOURCES", "auto") or "").strip().lower()
    if use_mock_setting in ("1", "true", "yes", "always"):
        adapters.append(MockSourceAdapter())
    elif use_mock_setting == "auto" and not adapters:
        adapters.append(MockSourceAdapter())

    logger.info(f"[Adapters] Registered sources: {[a.source_name for a in adapters]}")
    return adapters


__all__ = [
    "SourceAdapter",
    "ThingiverseAdapter",
    "Cults3DAdapter",
    "MyMiniFactoryAdapter",
    "PrintablesAdapter",
    "MakerWorldAdapter",
    "MockSourceAdapter",
    "build_default_adapters",
]
