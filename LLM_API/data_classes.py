from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List


# ========== Generation settings ==========

@dataclass
class GenerationConfig:
    """Sampling parameters shared by every provider"""
    temperature: float = 0.7
    top_p: float = 0.95
    top_k: int = 40
    max_output_tokens: int = 8192
    stop_sequences: List[str] = field(default_factory=list)

    def merged(self, overrides: Optional["GenerationConfig"]) -> "GenerationConfig":
        """Return overrides when given, otherwise a copy of this config"""
        if overrides is None:
            return GenerationConfig(
                temperature=self.temperature,
                top_p=self.top_p,
                top_k=self.top_k,
                max_output_tokens=self.max_output_tokens,
                stop_sequences=list(self.stop_sequences),
            )
        return overrides


DEFAULT_GENERATION_CONFIG = GenerationConfig()


# ========== Base Classes ==========

@dataclass
class BaseRequest:
    """Base class for every model request"""
    prompt: str = ""
    model_name: Optional[str] = None
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None
    config: Optional[GenerationConfig] = None

    def to_dict(self) -> Dict[str, Any]:
        """Dictionary form for API requests"""
        return {
            k: v for k, v in self.__dict__.items()
            if v is not None and k != "config"
        }

    def resolved_config(self) -> GenerationConfig:
        """Generation config with per-request overrides applied"""
        config = DEFAULT_GENERATION_CONFIG.merged(self.config)
        if self.temperature is not None:
            config.temperature = self.temperature
        if self.max_tokens is not None:
            config.max_output_tokens = self.max_tokens
        return config


@dataclass
class BaseResponse:
    """Base class for every model response"""
    text: str = ""
    model_used: Optional[str] = None
    finish_reason: Optional[str] = None
    usage: Optional[Dict[str, int]] = None
    error: Optional[str] = None
    raw_response: Optional[Any] = None

    @property
    def success(self) -> bool:
        """Whether the request succeeded"""
        return self.error is None


# ========== Streaming ==========

@dataclass
class StreamChunk:
    """A single text delta received from a streaming model call"""
    text: str = ""
    finish_reason: Optional[str] = None

    @property
    def delta(self) -> str:
        return self.text


# ========== Provider configuration ==========

@dataclass
class ProviderConfig:
    """Provider specific settings"""
    provider_name: str = ""
    model_name: str = ""
    supports_streaming: bool = True
    credential_env_var: str = ""

    # provider limits
    max_tokens_limit: Optional[int] = None


# ========== Usage helpers ==========

def build_usage(prompt_tokens: Optional[int], completion_tokens: Optional[int]) -> Optional[Dict[str, int]]:
    """Normalise provider token counters into a usage dictionary"""
    if prompt_tokens is None and completion_tokens is None:
        return None
    prompt_tokens = prompt_tokens or 0
    completion_tokens = completion_tokens or 0
    return {
        "prompt_tokens": prompt_tokens,
        "completion_tokens": completion_tokens,
        "total_tokens": prompt_tokens + completion_tokens,
    }
