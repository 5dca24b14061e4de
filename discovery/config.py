from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

_PACKAGE_DIR = Path(__file__).resolve().parent

CITIES: tuple[str, ...] = (
    "Минск",
    "Гродно",
    "Брест",
    "Гомель",
    "Витебск",
    "Могилев",
    "Бобруйск",
)


@dataclass(frozen=True)
class SearchConfig:
    catalog_path: Path = Path(
        os.getenv("CATALOG_PATH", str(_PACKAGE_DIR / "data" / "establishments.json"))
    )
    synonyms_path: str | None = os.getenv("SYNONYMS_PATH") or None
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    default_radius_km: float = 10.0
    max_radius_km: float = 1000.0
    default_page_size: int = 20
    max_page_size: int = 100
    map_default_limit: int = 100
    map_max_limit: int = 500


@dataclass(frozen=True)
class RankingWeights:
    """
    Weights for the composite relevance score.

    Every term is squashed into [0, 1] before weighting, so the score is
    bounded by the sum of the weights.
    """

    distance: float = 0.35
    rating: float = 0.35
    reviews: float = 0.1
    boost: float = 0.2
    distance_scale_km: float = 2.0
    review_saturation: int = 500


DEFAULT_SEARCH_CONFIG = SearchConfig()
DEFAULT_RANKING_WEIGHTS = RankingWeights()


@dataclass(frozen=True)
class IngestionConfig:
    """
    Paths for converting a raw establishment export into the catalog snapshot.
    """

    raw_path: Path = Path(os.getenv("RAW_EXPORT_PATH", "data/raw/establishments_export.json"))
    processed_data_dir: Path = _PACKAGE_DIR / "data"
    processed_filename: str = "establishments.json"

    @property
    def processed_path(self) -> Path:
        return self.processed_data_dir / self.processed_filename


DEFAULT_INGESTION_CONFIG = IngestionConfig()
