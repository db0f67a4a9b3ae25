from dataclasses import dataclass
from pathlib import Path

_DATA_DIR = Path(__file__).resolve().parent.parent / "data"


@dataclass(frozen=True)
class CatalogConfig:
    """
    Locations of the seed files backing the in-memory catalog.
    """

    data_dir: Path = _DATA_DIR
    plans_filename: str = "plans.json"
    questions_filename: str = "diagnosis_questions.json"
    faq_filename: str = "faq.json"

    @property
    def plans_path(self) -> Path:
        return self.data_dir / self.plans_filename

    @property
    def questions_path(self) -> Path:
        return self.data_dir / self.questions_filename

    @property
    def faq_path(self) -> Path:
        return self.data_dir / self.faq_filename


DEFAULT_CATALOG_CONFIG = CatalogConfig()
