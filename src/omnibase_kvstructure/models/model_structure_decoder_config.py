# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""StructureDecoder Configuration Model."""

from __future__ import annotations

from collections.abc import Mapping

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    ValidationError,
    model_validator,
)

from omnibase_kvstructure.enums import EnumInfraTransportType
from omnibase_kvstructure.errors import (
    ModelInfraErrorContext,
    ProtocolConfigurationError,
)
from omnibase_kvstructure.models.model_consul_store_config import (
    ModelConsulStoreConfig,
)
from omnibase_kvstructure.models.model_watch_backoff_config import (
    ModelWatchBackoffConfig,
)

DEFAULT_TAG_NAME: str = "consul"


class ModelStructureDecoderConfig(BaseModel):
    """Configuration for one StructureDecoder.

    An empty prefix is accepted here and rejected when the decoder runs,
    so the failure reaches the consumer through the error queue.

    Attributes:
        prefix: Watched key prefix (``app/config/``)
        tag_name: Field metadata key holding per-field key overrides
        quiescence_period_seconds: Quiet time required before delivering a
            change; 0 disables quiescence
        quiescence_timeout_seconds: Upper bound on how long quiescence may
            delay a delivery
        backoff: Retry backoff after failed blocking queries
        consul: Consul connection settings, used when no store is injected

    Example:
        >>> config = ModelStructureDecoderConfig(
        ...     prefix="service/web/",
        ...     quiescence_period_seconds=0.5,
        ... )
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    prefix: str = Field(default="", description="Watched key prefix")
    tag_name: str = Field(
        default=DEFAULT_TAG_NAME,
        min_length=1,
        description="Field metadata key for key overrides",
    )
    quiescence_period_seconds: float = Field(
        default=0.0,
        ge=0.0,
        le=60.0,
        description="Quiet period before a change is delivered (0 disables)",
    )
    quiescence_timeout_seconds: float = Field(
        default=5.0,
        ge=0.0,
        le=600.0,
        description="Maximum delay quiescence may add to a delivery",
    )
    backoff: ModelWatchBackoffConfig = Field(
        default_factory=ModelWatchBackoffConfig,
        description="Backoff after failed blocking queries",
    )
    consul: ModelConsulStoreConfig = Field(
        default_factory=ModelConsulStoreConfig,
        description="Consul connection settings",
    )

    @model_validator(mode="after")
    def _check_quiescence_window(self) -> ModelStructureDecoderConfig:
        if (
            self.quiescence_period_seconds > 0
            and self.quiescence_timeout_seconds < self.quiescence_period_seconds
        ):
            raise ValueError(
                "quiescence_timeout_seconds must be >= quiescence_period_seconds"
            )
        return self

    @property
    def quiescence_enabled(self) -> bool:
        return self.quiescence_period_seconds > 0

    @classmethod
    def from_mapping(
        cls, raw: Mapping[str, object]
    ) -> ModelStructureDecoderConfig:
        """Validate a raw mapping (parsed YAML, environment) into a config.

        Args:
            raw: Mapping with the model's field names; ``consul.token`` may be
                a plain string and is wrapped in SecretStr.

        Returns:
            Validated configuration.

        Raises:
            ProtocolConfigurationError: Naming the failing fields, never their
                values.
        """
        data = dict(raw)
        consul_raw = data.get("consul")
        if isinstance(consul_raw, Mapping):
            consul_data = dict(consul_raw)
            token_raw = consul_data.get("token")
            if isinstance(token_raw, str):
                consul_data["token"] = SecretStr(token_raw)
            data["consul"] = consul_data

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            ctx = ModelInfraErrorContext(
                transport_type=EnumInfraTransportType.RUNTIME,
                operation="validate_config",
                target_name="structure_decoder",
            )
            sanitized_fields = [
                ".".join(str(part) for part in err.get("loc", ("unknown",)))
                for err in e.errors()
            ]
            raise ProtocolConfigurationError(
                "Invalid decoder configuration - validation failed for fields: "
                f"{sanitized_fields}",
                context=ctx,
            ) from e


__all__: list[str] = ["DEFAULT_TAG_NAME", "ModelStructureDecoderConfig"]
