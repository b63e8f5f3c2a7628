"""Application settings using Pydantic Settings."""
from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict


class BlastDatabase(BaseModel):
    name: str
    label: str


DEFAULT_DATABASES = [
    BlastDatabase(name="nt", label="Nucleotide Collection (Standard)"),
    BlastDatabase(name="refseq_representative_genomes", label="RefSeq Genomes (Fast)"),
    BlastDatabase(name="refseq_rna", label="RefSeq RNA"),
]


class Settings(BaseSettings):
    # --- App ---
    APP_NAME: str = "DNA Sequence Analyzer"
    APP_VERSION: str = "1.0"
    CORS_ORIGINS: str = "*"  # comma-separated or '*' for all

    # --- Server ---
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "info"

    # --- BLAST ---
    BLAST_URL: str = "https://blast.ncbi.nlm.nih.gov/Blast.cgi"
    BLAST_PROGRAM: str = "blastn"
    # Relay prefixes tried in order; "" connects directly
    BLAST_TRANSPORTS: list[str] = [
        "https://corsproxy.io/?",
        "https://api.allorigins.win/raw?url=",
    ]
    BLAST_DATABASES: list[BlastDatabase] = DEFAULT_DATABASES
    SUBMIT_TIMEOUT: float = 10.0
    POLL_INTERVAL: float = 5.0
    POLL_BUDGET: float = 45.0
    FETCH_TIMEOUT: float = 30.0
    RESULT_LIMIT: int = 3
    MIN_BLAST_LENGTH: int = 20

    # --- Image enrichment ---
    FETCH_IMAGES: bool = True
    WIKI_API_URL: str = "https://en.wikipedia.org/w/api.php"
    WIKI_PAGE_URL: str = "https://en.wikipedia.org/wiki/"
    IMAGE_TIMEOUT: float = 2.0
    IMAGE_SIZE: int = 150

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    @property
    def cors_origins_list(self) -> list[str]:
        raw = self.CORS_ORIGINS.strip()
        if raw == "*":
            return ["*"]
        return [o.strip() for o in raw.split(",") if o.strip()]


settings = Settings()
