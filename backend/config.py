import os
from pydantic_settings import BaseSettings


def _parse_cors_origins() -> list[str] | None:
    """Parse CORS_ORIGINS env var as comma-separated string or JSON list."""
    raw = os.environ.get("CORS_ORIGINS")
    if not raw:
        return None
    if raw.startswith("["):
        import json
        return json.loads(raw)
    return [o.strip() for o in raw.split(",") if o.strip()]


class Settings(BaseSettings):
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"
    cors_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
    ]
    debug: bool = False

    # Model gateway
    gateway_timeout_seconds: float = 120.0  # comprehensive requests can take minutes
    gateway_temperature: float = 0.5
    gateway_max_output_tokens: int = 4096

    # Evaluation pipeline
    max_concurrent_analyzers: int = 6
    cache_ttl_days: int = 7
    max_recommendations: int = 8
    rubric_path: str = ""  # optional YAML override of the built-in rubric

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "protected_namespaces": ("settings_",)}


_cors_override = _parse_cors_origins()
settings = Settings(**{"cors_origins": _cors_override} if _cors_override else {})
