import os
from dataclasses import dataclass

_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))


@dataclass(frozen=True)
class ShopConfig:
    # Paths
    SEED_PATH: str = os.environ.get(
        "SHOPCORE_SEED_PATH", os.path.join(_ROOT, "data", "seed.json")
    )

    # Logging
    LOG_LEVEL: str = os.environ.get("SHOPCORE_LOG_LEVEL", "INFO")

    # Variant matrix: above this many models resolution goes through the index
    MODEL_INDEX_THRESHOLD: int = int(
        os.environ.get("SHOPCORE_MODEL_INDEX_THRESHOLD", "16")
    )
    DESCRIPTION_SEPARATOR: str = ", "

    # Money
    DEFAULT_CURRENCY: str = os.environ.get("SHOPCORE_CURRENCY", "VND")


config = ShopConfig()
