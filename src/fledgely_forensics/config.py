from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_ENV: str = "development"

    # Forensic watermark defaults -- every WatermarkConfig field not given
    # explicitly falls back to these.
    WATERMARK_SECRET_KEY: str = "fledgely-forensic-watermark-v1"
    WATERMARK_STRENGTH: int = 3
    WATERMARK_REPETITIONS: int = 5
    WATERMARK_OUTPUT_QUALITY: int = 90
    WATERMARK_DETECTION_THRESHOLD: float = 0.85
    WATERMARK_OUTPUT_FORMAT: str = "jpeg"

    # Service-to-service bearer key for the HTTP API. Empty disables the API.
    FORENSICS_API_KEY: str = ""
    MAX_REQUEST_BYTES: int = 20 * 1024 * 1024

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
