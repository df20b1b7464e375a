from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings

from backend.common.constants import DEFAULT_COMPANY_LIST_LIMIT


class Settings(BaseSettings):
    """Application-wide settings loaded from environment variables."""

    service_name: str = Field(
        default="insights_api",
        description="Friendly name of the running service for logging.",
    )
    log_level: str = Field(
        default="INFO",
        description="Root logger level.",
    )
    company_list_limit: int = Field(
        default=DEFAULT_COMPANY_LIST_LIMIT,
        description="Maximum number of companies returned by list endpoints.",
    )

    # LLM Configuration
    llm_backend: str = Field(
        default="perplexity",
        description="LLM backend to use (perplexity, openai, vllm, groq, ollama)",
    )
    llm_temperature: float = Field(
        default=0.3,
        description="Sampling temperature for transcript analysis.",
    )
    llm_timeout_seconds: float = Field(
        default=60.0,
        description="Request timeout applied by the LLM client.",
    )
    llm_max_retries: int = Field(
        default=2,
        description="Retries performed by the LLM client on transient failures.",
    )
    perplexity_api_key: str = Field(
        default="",
        description="Perplexity API key",
    )
    perplexity_base_url: str = Field(
        default="https://api.perplexity.ai",
        description="Perplexity API base URL",
    )
    perplexity_model: str = Field(
        default="sonar",
        description="Perplexity model to use for transcript analysis",
    )
    openai_api_key: str = Field(
        default="",
        description="OpenAI API key",
    )
    openai_base_url: str = Field(
        default="https://api.openai.com/v1",
        description="OpenAI API base URL",
    )
    openai_model: str = Field(
        default="gpt-4o-mini",
        description="OpenAI model to use for transcript analysis",
    )
    vllm_base_url: str = Field(
        default="http://localhost:8000/v1",
        description="vLLM API base URL",
    )
    vllm_model: str = Field(
        default="meta-llama/Meta-Llama-3-8B-Instruct",
        description="vLLM model to use for transcript analysis",
    )
    vllm_api_key: str = Field(
        default="EMPTY",
        description="vLLM API key",
    )
    groq_api_key: str = Field(
        default="",
        description="Groq API key",
    )
    groq_base_url: str = Field(
        default="https://api.groq.com/openai/v1",
        description="Groq API base URL",
    )
    groq_model: str = Field(
        default="llama3-8b-8192",
        description="Groq model to use for transcript analysis",
    )
    ollama_base_url: str = Field(
        default="http://localhost:11434/v1",
        description="Ollama API base URL",
    )
    ollama_model: str = Field(
        default="llama3",
        description="Ollama model to use for transcript analysis",
    )

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Return cached Settings instance."""
    return Settings()
