# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""kvstructure Enumerations Module.

Exports:
    EnumCoreErrorCode: Error classification codes
    EnumDecoderState: StructureDecoder lifecycle states
    EnumFieldKind: Destination field kinds for tree decoding
    EnumInfraTransportType: Transport type used in error context
"""

from omnibase_kvstructure.enums.enum_core_error_code import EnumCoreErrorCode
from omnibase_kvstructure.enums.enum_decoder_state import EnumDecoderState
from omnibase_kvstructure.enums.enum_field_kind import EnumFieldKind
from omnibase_kvstructure.enums.enum_infra_transport_type import (
    EnumInfraTransportType,
)

__all__: list[str] = [
    "EnumCoreErrorCode",
    "EnumDecoderState",
    "EnumFieldKind",
    "EnumInfraTransportType",
]
