"""Host integration module."""

from .host_block import (
    HostBlock, HostBlockParams, HostOutput, HostRegistry, marshal_frame
)

__all__ = [
    "HostBlock",
    "HostBlockParams",
    "HostOutput",
    "HostRegistry",
    "marshal_frame"
]
