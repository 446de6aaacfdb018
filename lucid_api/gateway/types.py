"""Core types and DTOs for the LLM gateway layer."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class GatewayVendor(str, Enum):
    """Supported LLM vendors."""

    DEEPSEEK = "deepseek"
    OPENAI = "openai"


class RequestStatus(str, Enum):
    """Outcome of a single upstream call."""

    SUCCESS = "success"
    REJECTED = "rejected"  # Upstream answered with a non-2xx status
    BAD_RESPONSE = "bad_response"  # 2xx but not a chat completion envelope
    UNREACHABLE = "unreachable"  # Connection refused, DNS, TLS...
    TIMEOUT = "timeout"


class ChatRole(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


# ---------------------------------------------------------------------------
# Completion request / response
# ---------------------------------------------------------------------------


@dataclass
class ChatMessage:
    role: ChatRole
    content: str

    def to_dict(self) -> dict:
        return {"role": self.role.value, "content": self.content}


@dataclass
class CompletionRequest:
    """A chat-completion call to dispatch to a vendor."""

    messages: list[ChatMessage] = field(default_factory=list)
    model: str = ""  # empty → adapter default
    temperature: float = 0.7
    max_tokens: int | None = None
    json_response: bool = False  # ask for response_format={"type": "json_object"}
    timeout: float | None = None  # empty → adapter default


@dataclass
class CompletionResponse:
    """Unified result of a vendor call. Returned for every outcome, never raised."""

    vendor: GatewayVendor
    status: RequestStatus = RequestStatus.SUCCESS
    text: str = ""
    model_version: str = ""

    # Performance
    latency_ms: int = 0

    # Tokens
    input_tokens: int = 0
    output_tokens: int = 0

    # Error details (if status != SUCCESS)
    status_code: int = 0  # Upstream HTTP status, 0 when no response arrived
    error_message: str = ""

    @property
    def ok(self) -> bool:
        return self.status == RequestStatus.SUCCESS

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    def to_dict(self) -> dict:
        return {
            "vendor": self.vendor.value,
            "status": self.status.value,
            "model_version": self.model_version,
            "latency_ms": self.latency_ms,
            "total_tokens": self.total_tokens,
            "status_code": self.status_code,
            "error_message": self.error_message,
        }


# ---------------------------------------------------------------------------
# Canonical product schema
# ---------------------------------------------------------------------------

PLACEHOLDER_IMAGE_URL = "https://via.placeholder.com/300"
NO_INFORMATION = "No information available"
NOT_AVAILABLE = "Not available"
UNKNOWN_PRODUCT = "Unknown product"
UNKNOWN_RETAILER = "Unknown retailer"


@dataclass
class Retailer:
    name: str = UNKNOWN_RETAILER
    url: str = "#"
    price: float = 0.0
    isLowestPrice: bool = False
    isReputable: bool = False


@dataclass
class Product:
    """Normalized product. Every field is always present and well typed."""

    productName: str = UNKNOWN_PRODUCT
    productImageUrl: str = PLACEHOLDER_IMAGE_URL
    averageRating: float = 0.0
    reviewCount: int = 0
    pros: str = NO_INFORMATION
    cons: str = NO_INFORMATION
    priceMin: float = 0.0
    priceMax: float = 0.0
    retailers: list[Retailer] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Recognised upstream completion shapes
# ---------------------------------------------------------------------------


@dataclass
class ProductListShape:
    """Completion carried a list of products (under ``products``, ``recommendations`` or as a bare array)."""

    items: list[Any]
    source: str


@dataclass
class SingleProductShape:
    """Completion was one object describing a single product."""

    payload: dict[str, Any]


@dataclass
class UnparseableShape:
    """Completion was not JSON (or JSON we cannot use)."""

    raw: str
    reason: str = ""


CompletionShape = ProductListShape | SingleProductShape | UnparseableShape


# ---------------------------------------------------------------------------
# Vendor config
# ---------------------------------------------------------------------------


@dataclass
class VendorConfig:
    """Connection configuration for a vendor."""

    vendor: GatewayVendor
    base_url: str
    model: str
    timeout_seconds: float = 30.0
