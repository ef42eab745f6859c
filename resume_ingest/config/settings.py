from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    pdf_engine: str = "pdfplumber"
    max_file_size_mb: int = 50

    parser_preset: str = "production"
    parser_max_retries: int | None = None
    parser_timeout_ms: int | None = None
    parser_min_text_length: int = 20
    parser_ocr_locked_documents: bool = False

    ocr_enabled: bool | None = None
    ocr_language: str = "eng"
    ocr_page_seg_mode: int | None = None
    ocr_dpi: int | None = None
    ocr_whitelist: str | None = None
    ocr_blacklist: str | None = None
    tesseract_cmd: str = ""

